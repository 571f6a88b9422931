"""
Audit event delivery.

Audit events are fire-and-forget: a sink that cannot deliver logs the failure
and returns, it never fails the operation that produced the event.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import requests
from azure.storage.queue import QueueClient
from pydantic_core import to_jsonable_python

from ..constants import AuditEvent, Timeouts
from .logger import get_logger

TELEGRAM_API_BASE = "https://api.telegram.org"


def format_audit_message(
    event: AuditEvent,
    actor_role: str = "user",
    actor_handle: Optional[str] = None,
    actor_id: Optional[str] = None,
    timestamp: Optional[datetime] = None,
    **fields: Any,
) -> str:
    """
    Render an audit event as channel text.

    Example::

        [ISSUED]
        user=alice id=42
        login=u1
        token=Ab3dE6gH9k
        time=2024-01-01T00:00:00+00:00
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    lines = [
        f"[{AuditEvent(event).value}]",
        f"{actor_role}={actor_handle or '-'} id={actor_id or '-'}",
    ]
    lines.extend(f"{key}={value}" for key, value in fields.items())
    lines.append(f"time={timestamp.isoformat()}")
    return "\n".join(lines)


class AuditNotifier:
    """Base audit sink; subclasses implement `_deliver`."""

    sink_name = "audit"

    def __init__(self):
        self.logger = get_logger()

    def emit(
        self,
        event: AuditEvent,
        actor_role: str = "user",
        actor_handle: Optional[str] = None,
        actor_id: Optional[str] = None,
        **fields: Any,
    ) -> bool:
        """
        Deliver one audit event.

        Returns:
            True if the sink accepted the event, False if delivery failed
        """
        payload = {
            "event": AuditEvent(event).value,
            "actor_role": actor_role,
            "actor_handle": actor_handle,
            "actor_id": actor_id,
            "fields": fields,
            "time": datetime.now(timezone.utc),
        }
        text = format_audit_message(
            event,
            actor_role=actor_role,
            actor_handle=actor_handle,
            actor_id=actor_id,
            timestamp=payload["time"],
            **fields,
        )

        try:
            self._deliver(text, payload)
        except Exception as e:
            self.logger.warning(
                f"Audit delivery failed: {str(e)}",
                extra={"sink": self.sink_name, "event": payload["event"]},
            )
            return False

        self.logger.debug(
            "Audit event delivered", extra={"sink": self.sink_name, "event": payload["event"]}
        )
        return True

    def _deliver(self, text: str, payload: Dict[str, Any]) -> None:
        raise NotImplementedError


class NullAuditNotifier(AuditNotifier):
    """Sink used when no audit destination is configured."""

    sink_name = "null"

    def _deliver(self, text: str, payload: Dict[str, Any]) -> None:
        self.logger.debug("Audit event dropped", extra={"event": payload["event"]})


class TelegramChannelNotifier(AuditNotifier):
    """Posts audit text to a chat channel through the Bot API."""

    sink_name = "telegram"

    def __init__(
        self,
        bot_token: str,
        channel_id: str,
        timeout: int = Timeouts.AUDIT_HTTP,
        session: Optional[requests.Session] = None,
    ):
        super().__init__()
        self.bot_token = bot_token
        self.channel_id = channel_id
        self.timeout = timeout
        self.session = session or requests.Session()

    def _deliver(self, text: str, payload: Dict[str, Any]) -> None:
        response = self.session.post(
            f"{TELEGRAM_API_BASE}/bot{self.bot_token}/sendMessage",
            json={
                "chat_id": self.channel_id,
                "text": text,
                "disable_web_page_preview": True,
            },
            timeout=self.timeout,
        )
        response.raise_for_status()


class QueueAuditNotifier(AuditNotifier):
    """Sends audit events as JSON messages to an Azure Storage queue."""

    sink_name = "queue"

    def __init__(
        self,
        connection_string: str,
        queue_name: str,
        queue_client: Optional[QueueClient] = None,
    ):
        super().__init__()
        self.queue_name = queue_name
        self.queue_client = queue_client or QueueClient.from_connection_string(
            conn_str=connection_string, queue_name=queue_name
        )

    def _deliver(self, text: str, payload: Dict[str, Any]) -> None:
        message = json.dumps(to_jsonable_python({**payload, "text": text}))
        self.queue_client.send_message(message)
