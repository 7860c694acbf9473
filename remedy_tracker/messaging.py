"""
Templated messaging gateway client (WhatsApp templates via 360dialog).

Purpose:
    - Send one approved template message with ordered text parameters.

Policy:
    - Never raises to the caller. Any non-2xx response, transport error or
      missing configuration returns None and is logged.
    - Phone numbers are sent as given (international format, digits only,
      e.g. 919876543210); formatting is the caller's concern.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol, Sequence

import httpx


logger = logging.getLogger(__name__)


class MessagingGateway(Protocol):
    """Interface the reminder gate depends on."""

    def send_template_message(
        self,
        phone_number: str,
        template_name: str,
        params: Sequence[str],
    ) -> Optional[dict[str, Any]]:
        """Return the gateway acknowledgment, or None on failure."""
        ...


def build_template_payload(
    *,
    phone_number: str,
    namespace: str,
    template_name: str,
    params: Sequence[str],
    language_code: str = "en",
) -> dict[str, Any]:
    """Build the gateway request body."""

    return {
        "to": str(phone_number),
        "type": "template",
        "template": {
            "namespace": str(namespace),
            "language": {"code": str(language_code)},
            "name": str(template_name),
            "components": [
                {
                    "type": "body",
                    "parameters": [{"type": "text", "text": str(p)} for p in list(params or [])],
                }
            ],
        },
    }


class TemplateMessagingClient:
    """httpx-based client for the templated messaging gateway."""

    def __init__(
        self,
        *,
        api_key: str,
        namespace: str,
        base_url: str,
        timeout_seconds: float,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = str(api_key or "")
        self.namespace = str(namespace or "")
        self.base_url = str(base_url)
        self.timeout_seconds = float(timeout_seconds)
        # NOTE: transport is injectable (httpx.MockTransport in tests).
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "D360-API-KEY": self.api_key,
            "Content-Type": "application/json",
        }

    def send_template_message(
        self,
        phone_number: str,
        template_name: str,
        params: Sequence[str],
    ) -> Optional[dict[str, Any]]:
        """
        POST one template message.

        Returns:
            The decoded JSON acknowledgment ({} if the body is not JSON), or None on failure.
        """

        # --- without an API key every send is a failure ---
        if not self.api_key:
            logger.warning("messaging disabled (no API key); template=%s not sent", template_name)
            return None

        payload = build_template_payload(
            phone_number=phone_number,
            namespace=self.namespace,
            template_name=template_name,
            params=params,
        )

        try:
            with httpx.Client(timeout=self.timeout_seconds, transport=self._transport) as client:
                resp = client.post(
                    self.base_url,
                    headers=self._headers(),
                    content=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
                )
                resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "template message rejected status=%s template=%s",
                exc.response.status_code,
                template_name,
            )
            return None
        except httpx.HTTPError as exc:
            logger.warning("template message transport error template=%s error=%s", template_name, str(exc))
            return None

        # --- acknowledgment body (gateway returns JSON; tolerate empty bodies) ---
        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {"response": data}
