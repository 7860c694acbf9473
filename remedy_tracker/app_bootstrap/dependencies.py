"""
Dependency providers for FastAPI Depends.

Purpose:
    - Hand the per-app services (app.state.services) to the routers.
    - Keep routers free of module-level singletons.
"""

from __future__ import annotations

from fastapi import Request

from remedy_tracker.app_bootstrap.config_bootstrap import AppServices
from remedy_tracker.clock import ClockService
from remedy_tracker.config import ConfigStore
from remedy_tracker.identity import IdentityProvider
from remedy_tracker.reminders.service import ReminderService
from remedy_tracker.runtime.event_stream import EventStream
from remedy_tracker.store.catalog import MedicineStore, UserStore
from remedy_tracker.store.sales import SalesStore


def get_services(request: Request) -> AppServices:
    """Return the services registered by create_app()."""

    return request.app.state.services


def get_config_store_dep(request: Request) -> ConfigStore:
    return get_services(request).config_store


def get_clock_service_dep(request: Request) -> ClockService:
    return get_services(request).clock


def get_identity_dep(request: Request) -> IdentityProvider:
    return get_services(request).identity


def get_user_store_dep(request: Request) -> UserStore:
    return get_services(request).users


def get_medicine_store_dep(request: Request) -> MedicineStore:
    return get_services(request).medicines


def get_sales_store_dep(request: Request) -> SalesStore:
    return get_services(request).sales


def get_event_stream_dep(request: Request) -> EventStream:
    """
    EventStream for Depends.

    Routers publish success / error notifications through it.
    """

    return get_services(request).events


def get_reminder_service_dep(request: Request) -> ReminderService:
    return get_services(request).reminder_service
