"""Unit tests for the webhook, Telegram and composite notifiers.

HTTP calls are mocked via unittest.mock.patch to avoid real network traffic.
"""

from __future__ import annotations

import asyncio
import json
import urllib.parse
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from domain.models import WorkflowResult
from domain.ports import NotifierPort
from infra.notifications import CompositeNotifier, NotificationError, WebhookNotifier, batch_payload, batch_text
from infra.telegram import TelegramApiError, TelegramBotConfig, TelegramNotifier
from test.mocks import FixedClock, RecordingNotifier

NOW = datetime(2025, 6, 1, 9, 30, tzinfo=timezone.utc)


def _mock_response(body: dict) -> MagicMock:
    resp = MagicMock()
    resp.read.return_value = json.dumps(body).encode("utf-8")
    resp.__enter__ = MagicMock(return_value=resp)
    resp.__exit__ = MagicMock(return_value=False)
    return resp


def _results() -> list[WorkflowResult]:
    return [
        WorkflowResult(account="ali****", dp_name="NABIL", success=True, timestamp=NOW, reference_id="ABC12345"),
        WorkflowResult(
            account="bob****",
            dp_name="NIC",
            success=False,
            timestamp=NOW,
            error="Login rejected: Invalid credentials",
        ),
    ]


class TestPayload:
    def test_batch_payload_shape(self) -> None:
        payload = batch_payload(_results(), "2025-06-01T09:30:00+00:00")

        assert payload["text"] == "MeroShare ASBA Automation Complete"
        assert payload["timestamp"] == "2025-06-01T09:30:00+00:00"
        data = payload["data"]
        assert (data["total"], data["successful"], data["failed"]) == (2, 1, 1)
        assert data["results"][0] == {
            "account": "ali****",
            "status": "SUCCESS",
            "referenceId": "ABC12345",
            "error": None,
        }
        assert data["results"][1]["status"] == "FAILED"

    def test_batch_payload_masks_secret_looking_values(self) -> None:
        leaked = WorkflowResult(
            account="ali****",
            dp_name="NABIL",
            success=False,
            timestamp=NOW,
            error="A" * 40,
        )

        payload = batch_payload([leaked], "t")

        assert payload["data"]["results"][0]["error"] == "AAAA***"

    def test_batch_text_lists_each_account(self) -> None:
        text = batch_text(_results())

        assert text.splitlines() == [
            "MeroShare ASBA Automation Complete",
            "Total: 2 | Successful: 1 | Failed: 1",
            "OK   ali**** (ref ABC12345)",
            "FAIL bob****: Login rejected: Invalid credentials",
        ]


class TestWebhookNotifier:
    def test_conforms_to_notifier_port(self) -> None:
        assert isinstance(WebhookNotifier(url="https://hooks.test/x", clock=FixedClock(NOW)), NotifierPort)

    @patch("urllib.request.urlopen")
    def test_posts_json_summary(self, mock_urlopen: MagicMock) -> None:
        mock_urlopen.return_value = _mock_response({})
        notifier = WebhookNotifier(url="https://hooks.test/x", clock=FixedClock(NOW))

        asyncio.run(notifier.notify_batch(_results()))

        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "https://hooks.test/x"
        assert request.get_method() == "POST"
        assert request.get_header("Content-type") == "application/json"
        body = json.loads(request.data.decode("utf-8"))
        assert body["data"]["total"] == 2
        assert body["timestamp"] == NOW.isoformat()
        assert mock_urlopen.call_args[1]["timeout"] == 10.0

    @patch("urllib.request.urlopen")
    def test_transport_failure_raises_notification_error(self, mock_urlopen: MagicMock) -> None:
        mock_urlopen.side_effect = OSError("connection refused")
        notifier = WebhookNotifier(url="https://hooks.test/x", clock=FixedClock(NOW))

        with pytest.raises(NotificationError, match="connection refused"):
            asyncio.run(notifier.notify_batch(_results()))


class TestTelegramNotifier:
    @patch("urllib.request.urlopen")
    def test_sends_summary_message(self, mock_urlopen: MagicMock) -> None:
        mock_urlopen.return_value = _mock_response({"ok": True, "result": {"message_id": 1}})
        notifier = TelegramNotifier(TelegramBotConfig(bot_token="123:abc", chat_id="42"))

        asyncio.run(notifier.notify_batch(_results()))

        request = mock_urlopen.call_args[0][0]
        assert request.full_url == "https://api.telegram.org/bot123:abc/sendMessage"
        params = urllib.parse.parse_qs(request.data.decode("utf-8"))
        assert params["chat_id"] == ["42"]
        assert params["text"][0].startswith("MeroShare ASBA Automation Complete")

    @patch("urllib.request.urlopen")
    def test_api_error_is_raised(self, mock_urlopen: MagicMock) -> None:
        mock_urlopen.return_value = _mock_response({"ok": False, "description": "chat not found"})
        notifier = TelegramNotifier(TelegramBotConfig(bot_token="123:abc", chat_id="42"))

        with pytest.raises(TelegramApiError, match="chat not found"):
            asyncio.run(notifier.send_message("hi"))


class TestCompositeNotifier:
    def test_every_target_receives_the_batch(self) -> None:
        first, second = RecordingNotifier(), RecordingNotifier()

        asyncio.run(CompositeNotifier([first, second]).notify_batch(_results()))

        assert len(first.batches) == 1
        assert len(second.batches) == 1

    def test_one_failure_does_not_stop_the_rest(self) -> None:
        broken = RecordingNotifier(fail_with=RuntimeError("webhook down"))
        healthy = RecordingNotifier()

        with pytest.raises(NotificationError, match="RecordingNotifier: webhook down"):
            asyncio.run(CompositeNotifier([broken, healthy]).notify_batch(_results()))

        assert len(healthy.batches) == 1
