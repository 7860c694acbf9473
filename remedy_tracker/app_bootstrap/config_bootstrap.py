"""
Startup config and service wiring.

Purpose:
    - Keep initialization details out of create_app().
    - Fix the order config -> logging -> DB -> stores -> services in one place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from remedy_tracker.clock import ClockService
from remedy_tracker.config import Config, ConfigStore
from remedy_tracker.identity import IdentityProvider
from remedy_tracker.messaging import MessagingGateway, TemplateMessagingClient
from remedy_tracker.reminders.gate import ReminderGate
from remedy_tracker.reminders.service import ReminderService
from remedy_tracker.runtime.event_stream import EventStream
from remedy_tracker.runtime.logging import setup_logging
from remedy_tracker.store.catalog import MedicineStore, UserStore
from remedy_tracker.store.db import Database
from remedy_tracker.store.records import ROLE_ADMIN
from remedy_tracker.store.sales import SalesStore
from remedy_tracker.web_sessions import WebSessionStore


logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Every long-lived object of one app instance (kept on app.state.services)."""

    config_store: ConfigStore
    db: Database
    clock: ClockService
    sessions: WebSessionStore
    identity: IdentityProvider
    users: UserStore
    medicines: MedicineStore
    sales: SalesStore
    events: EventStream
    messenger: MessagingGateway
    reminder_gate: ReminderGate
    reminder_service: ReminderService


def bootstrap_services(
    config: Config,
    *,
    messaging_transport: httpx.BaseTransport | None = None,
) -> AppServices:
    """
    Run the startup initialization and return the wired services.

    Args:
        config: resolved startup config.
        messaging_transport: optional httpx transport for the gateway client.
    """

    # --- 1. logging first so later steps are visible ---
    setup_logging(
        config.log_level,
        log_file_enabled=config.log_file_enabled,
        log_file_path=config.log_file_path,
        log_file_max_bytes=config.log_file_max_bytes,
    )
    config_store = ConfigStore(config)

    # --- 2. DB and schema ---
    db = Database.for_path(config.db_path)
    db.init_schema()

    # --- 3. stores ---
    users = UserStore(db)
    medicines = MedicineStore(db)
    sales = SalesStore(db)

    # --- 4. identity ---
    sessions = WebSessionStore(ttl_seconds=config.session_ttl_seconds)
    identity = IdentityProvider(db=db, users=users, sessions=sessions)

    # --- 5. notifier, gateway and reminders ---
    events = EventStream()
    clock = ClockService()
    messenger = TemplateMessagingClient(
        api_key=config.messaging_api_key,
        namespace=config.messaging_namespace,
        base_url=config.messaging_base_url,
        timeout_seconds=config.messaging_timeout_seconds,
        transport=messaging_transport,
    )
    if not config_store.messaging_enabled:
        logger.warning("messaging_api_key is empty; reminder sends will fail")
    gate = ReminderGate(
        sales_store=sales,
        messenger=messenger,
        notifier=events,
        template_name=config.messaging_template_name,
    )
    reminder_service = ReminderService(gate=gate, sales_store=sales, clock=clock)

    services = AppServices(
        config_store=config_store,
        db=db,
        clock=clock,
        sessions=sessions,
        identity=identity,
        users=users,
        medicines=medicines,
        sales=sales,
        events=events,
        messenger=messenger,
        reminder_gate=gate,
        reminder_service=reminder_service,
    )

    # --- 6. first admin account ---
    ensure_bootstrap_admin(services)
    return services


def ensure_bootstrap_admin(services: AppServices) -> None:
    """
    Create the configured admin (credential + profile) when it does not exist yet.

    Nothing happens when bootstrap_admin_email / bootstrap_admin_password are empty.
    """

    cfg = services.config_store.config
    email = cfg.bootstrap_admin_email
    if not email or not cfg.bootstrap_admin_password:
        return
    if services.identity.has_credential(email):
        return

    uid = services.identity.create_credential(email, cfg.bootstrap_admin_password)
    services.users.create_user(uid=uid, name=cfg.bootstrap_admin_name, email=email, role=ROLE_ADMIN)
    logger.info("bootstrap admin created uid=%s", uid)
