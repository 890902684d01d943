from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from wikicomment_core.settings import settings

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


@dataclass(frozen=True)
class CommentEvent:
    path: str
    commenter_name: str
    body: str
    offset_start: int
    offset_end: int


@dataclass
class TelegramNotifier:
    """
    Posts a short message to a Telegram chat for every new comment.

    Disabled (no-op) unless both the bot token and the chat id are configured.
    """

    bot_token: str | None = settings.telegram_bot_token
    chat_id: str | None = settings.telegram_chat_id
    site_url: str = settings.site_url
    timeout_s: float = settings.notify_timeout_s
    transport: httpx.BaseTransport | None = None

    @property
    def enabled(self) -> bool:
        return bool(self.bot_token and self.chat_id)

    def format_message(self, event: CommentEvent) -> str:
        link = self.site_url.rstrip("/") + event.path
        return (
            f"New comment from {event.commenter_name}\n"
            f"{link} [{event.offset_start}, {event.offset_end})\n\n"
            f"{event.body}"
        )

    def notify(self, event: CommentEvent) -> None:
        if not self.enabled:
            logger.debug("Telegram notification disabled, skipping %s", event.path)
            return
        url = f"{TELEGRAM_API_URL}/bot{self.bot_token}/sendMessage"
        payload: dict[str, Any] = {
            "chat_id": self.chat_id,
            "text": self.format_message(event),
            "disable_web_page_preview": True,
        }
        with httpx.Client(timeout=self.timeout_s, transport=self.transport) as client:
            resp = client.post(url, json=payload)
        resp.raise_for_status()
