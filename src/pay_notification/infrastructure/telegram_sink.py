"""Telegram delivery through aiogram.

The Bot is created on first use so importing this module never needs a token.
"""

import logging

from aiogram import Bot
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from config.settings import settings
from src.pay_notification.domain.repository import NotificationSinkProtocol

logger = logging.getLogger(__name__)


class TelegramSink:
    def __init__(self, token: str) -> None:
        self._token = token
        self._bot: Bot | None = None

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(self._token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
        return self._bot

    async def send(self, chat_id: str, text: str) -> None:
        await self._get_bot().send_message(chat_id=int(chat_id), text=text)

    async def close(self) -> None:
        if self._bot is not None:
            await self._bot.session.close()
            self._bot = None


class NullSink:
    """Used when BOT_TOKEN is empty: in-app notifications only."""

    async def send(self, chat_id: str, text: str) -> None:
        logger.debug("Telegram delivery disabled, dropping message for chat %s", chat_id)

    async def close(self) -> None:
        return None


def build_sink() -> NotificationSinkProtocol:
    if settings.BOT_TOKEN:
        return TelegramSink(settings.BOT_TOKEN)
    return NullSink()


# Shared by every Notifier; closed in the FastAPI lifespan
notification_sink: NotificationSinkProtocol = build_sink()
