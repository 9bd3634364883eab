"""Tests for the Telegram Bot API client."""

from unittest.mock import MagicMock

import requests

from job_relay.notifications.telegram import TELEGRAM_MAX_LENGTH, TelegramClient

TOKEN = "123456:SECRET"


def response(body=None, status=200, bad_json=False):
    resp = MagicMock()
    resp.status_code = status
    if bad_json:
        resp.json.side_effect = ValueError("no json")
    else:
        resp.json.return_value = body
    return resp


def client_with(post_result=None, post_error=None):
    session = MagicMock()
    if post_error is not None:
        session.post.side_effect = post_error
    else:
        session.post.return_value = post_result
    return TelegramClient(TOKEN, "-100", timeout=5, session=session), session


class TestSendMessage:
    def test_success(self):
        client, session = client_with(response({"ok": True, "result": {"message_id": 77}}))

        result = client.send_message("<b>hi</b>", disable_notification=True)

        assert result.success
        assert result.message_id == 77
        url = session.post.call_args.args[0]
        kwargs = session.post.call_args.kwargs
        assert url == f"https://api.telegram.org/bot{TOKEN}/sendMessage"
        assert kwargs["json"]["chat_id"] == "-100"
        assert kwargs["json"]["parse_mode"] == "HTML"
        assert kwargs["json"]["disable_notification"] is True
        assert kwargs["timeout"] == 5

    def test_api_error(self):
        client, _ = client_with(response({"ok": False, "description": "Bad Request: chat not found"}, status=400))
        result = client.send_message("hi")
        assert not result.success
        assert result.error == "Bad Request: chat not found"

    def test_api_error_without_description(self):
        client, _ = client_with(response({"ok": False}, status=502))
        assert client.send_message("hi").error == "HTTP 502"

    def test_unparseable_body(self):
        client, _ = client_with(response(bad_json=True, status=500))
        result = client.send_message("hi")
        assert not result.success
        assert "parse" in result.error

    def test_timeout(self):
        client, _ = client_with(post_error=requests.Timeout("read timed out"))
        result = client.send_message("hi")
        assert not result.success
        assert result.error == "Timed out after 5s"

    def test_network_error_redacts_token(self):
        err = requests.ConnectionError(f"Max retries exceeded with url: /bot{TOKEN}/sendMessage")
        client, _ = client_with(post_error=err)
        result = client.send_message("hi")
        assert not result.success
        assert TOKEN not in result.error
        assert "<token>" in result.error

    def test_too_long_rejected_without_request(self):
        client, session = client_with(response({"ok": True, "result": {"message_id": 1}}))
        result = client.send_message("x" * (TELEGRAM_MAX_LENGTH + 1))
        assert not result.success
        session.post.assert_not_called()

    def test_missing_credentials(self):
        session = MagicMock()
        client = TelegramClient("", "", session=session)
        result = client.send_message("hi")
        assert not result.success
        session.post.assert_not_called()


class TestConnection:
    def test_get_me(self):
        client, _ = client_with(response({"ok": True, "result": {"username": "relay_bot"}}))
        probe = client.test_connection()
        assert probe["success"]
        assert probe["bot"]["username"] == "relay_bot"

    def test_bad_token(self):
        client, _ = client_with(response({"ok": False, "description": "Unauthorized"}, status=401))
        assert client.test_connection() == {"success": False, "error": "Unauthorized"}
