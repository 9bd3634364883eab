"""Telegram Bot API transport."""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from job_relay.utils.http_client import DEFAULT_TIMEOUT, create_session

logger = logging.getLogger("job_relay.telegram")

TELEGRAM_API_BASE = "https://api.telegram.org"
TELEGRAM_MAX_LENGTH = 4096


class TelegramError(Exception):
    """A Bot API call failed (network, timeout, HTTP or API-level error)."""


@dataclass
class SendResult:
    """Outcome of a single sendMessage call."""

    success: bool
    message_id: Optional[int] = None
    error: Optional[str] = None


class TelegramClient:
    """Sends messages to one chat. Failures come back as results, never exceptions."""

    def __init__(
        self,
        token: str,
        chat_id: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.token = token
        self.chat_id = chat_id
        self.timeout = timeout
        self.session = session or create_session()

    def send_message(
        self,
        text: str,
        parse_mode: str = "HTML",
        disable_web_page_preview: bool = False,
        disable_notification: bool = False,
    ) -> SendResult:
        if not self.token or not self.chat_id:
            logger.error("Telegram credentials not configured")
            return SendResult(success=False, error="Telegram bot token or chat id not configured")

        if len(text) > TELEGRAM_MAX_LENGTH:
            return SendResult(
                success=False,
                error=f"Message is {len(text)} characters, limit is {TELEGRAM_MAX_LENGTH}",
            )

        data = {
            "chat_id": self.chat_id,
            "text": text,
            "parse_mode": parse_mode,
            "disable_web_page_preview": disable_web_page_preview,
            "disable_notification": disable_notification,
        }

        try:
            body = self._request("sendMessage", data)
        except TelegramError as e:
            logger.warning("sendMessage failed: %s", e)
            return SendResult(success=False, error=str(e))

        return SendResult(success=True, message_id=body["result"]["message_id"])

    def test_connection(self) -> dict:
        """Call getMe to verify the token."""
        try:
            body = self._request("getMe", {})
        except TelegramError as e:
            return {"success": False, "error": str(e)}
        return {"success": True, "bot": body["result"]}

    def _request(self, method: str, data: dict) -> dict:
        url = f"{TELEGRAM_API_BASE}/bot{self.token}/{method}"
        try:
            response = self.session.post(url, json=data, timeout=self.timeout)
        except requests.Timeout:
            raise TelegramError(f"Timed out after {self.timeout}s")
        except requests.RequestException as e:
            raise TelegramError(f"Network error: {self._redact(str(e))}")

        try:
            body = response.json()
        except ValueError:
            raise TelegramError(f"Could not parse response (HTTP {response.status_code})")

        if not isinstance(body, dict) or not body.get("ok"):
            description = body.get("description") if isinstance(body, dict) else None
            raise TelegramError(description or f"HTTP {response.status_code}")

        return body

    def _redact(self, message: str) -> str:
        # requests errors echo the URL, which embeds the bot token
        return message.replace(self.token, "<token>") if self.token else message
