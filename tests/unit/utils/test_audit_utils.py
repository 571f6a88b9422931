"""
Unit tests for audit sinks.

HTTP and queue clients are replaced by small recording fakes; the sinks'
formatting and failure handling run unmodified.
"""

import json
from datetime import datetime, timezone

import requests

from access_pool_core.constants import AuditEvent
from access_pool_core.utils.audit_utils import (
    NullAuditNotifier,
    QueueAuditNotifier,
    TelegramChannelNotifier,
    format_audit_message,
)
from tests.fixtures.doubles import FailingNotifier, RecordingNotifier


class FakeResponse:
    def __init__(self, status_code: int):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeSession:
    def __init__(self, status_code: int = 200):
        self.status_code = status_code
        self.calls = []

    def post(self, url, json=None, timeout=None):
        self.calls.append({"url": url, "json": json, "timeout": timeout})
        return FakeResponse(self.status_code)


class FakeQueueClient:
    def __init__(self, error: Exception = None):
        self.error = error
        self.messages = []

    def send_message(self, content):
        if self.error:
            raise self.error
        self.messages.append(content)


class TestFormatAuditMessage:
    """Test the channel text layout."""

    def test_layout(self):
        text = format_audit_message(
            AuditEvent.ISSUED,
            actor_handle="alice",
            actor_id="42",
            timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
            login="u1",
            token="Ab3dE6gH9k",
        )

        assert text == (
            "[ISSUED]\n"
            "user=alice id=42\n"
            "login=u1\n"
            "token=Ab3dE6gH9k\n"
            "time=2024-01-01T00:00:00+00:00"
        )

    def test_missing_actor_rendered_as_dash(self):
        text = format_audit_message(AuditEvent.EMPTY, actor_role="admin")

        assert text.splitlines()[1] == "admin=- id=-"


class TestAuditNotifier:
    """Test delivery outcome handling."""

    def test_recording_sink_receives_payload(self):
        notifier = RecordingNotifier()

        assert notifier.emit(AuditEvent.UPLOAD_TEXT, actor_role="admin", actor_id="1", count=3)

        text, payload = notifier.events[0]
        assert payload["event"] == "UPLOAD_TEXT"
        assert payload["fields"] == {"count": 3}
        assert text.startswith("[UPLOAD_TEXT]\nadmin=- id=1\ncount=3\n")

    def test_delivery_failure_is_swallowed(self):
        """A broken sink reports False instead of raising."""
        assert FailingNotifier().emit(AuditEvent.ISSUED, token="abc") is False

    def test_null_sink_accepts_everything(self):
        assert NullAuditNotifier().emit(AuditEvent.ERROR, reason="x") is True


class TestTelegramChannelNotifier:
    """Test posting to the audit channel."""

    def test_posts_send_message(self):
        session = FakeSession()
        notifier = TelegramChannelNotifier("123:ABC", "-1001", session=session)

        assert notifier.emit(AuditEvent.REVOKE, actor_role="by", actor_id="7", token="tok123")

        call = session.calls[0]
        assert call["url"] == "https://api.telegram.org/bot123:ABC/sendMessage"
        assert call["json"]["chat_id"] == "-1001"
        assert call["json"]["text"].startswith("[REVOKE]\nby=- id=7\ntoken=tok123\n")
        assert call["json"]["disable_web_page_preview"] is True
        assert call["timeout"] == 10

    def test_http_error_does_not_raise(self):
        notifier = TelegramChannelNotifier("123:ABC", "-1001", session=FakeSession(500))

        assert notifier.emit(AuditEvent.ISSUED, token="tok123") is False


class TestQueueAuditNotifier:
    """Test sending audit events to a storage queue."""

    def test_sends_json_message(self):
        client = FakeQueueClient()
        notifier = QueueAuditNotifier("UseDevelopmentStorage=true", "audit", queue_client=client)

        assert notifier.emit(AuditEvent.LEDGER_FAILED, actor_id="9", entry_id=3, requeued=True)

        message = json.loads(client.messages[0])
        assert message["event"] == "LEDGER_FAILED"
        assert message["actor_id"] == "9"
        assert message["fields"] == {"entry_id": 3, "requeued": True}
        assert message["text"].startswith("[LEDGER_FAILED]")
        assert "time" in message

    def test_queue_failure_does_not_raise(self):
        client = FakeQueueClient(error=RuntimeError("QueueNotFound"))
        notifier = QueueAuditNotifier("UseDevelopmentStorage=true", "audit", queue_client=client)

        assert notifier.emit(AuditEvent.EMPTY) is False
