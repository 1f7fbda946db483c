"""Telegram WebApp initData validation.

The mini-app sends the raw `initData` query string. Validation per Telegram docs:
  secret_key = HMAC_SHA256(key="WebAppData", msg=bot_token)
  data_check_string = "\n".join(sorted(f"{k}={v}" for every field except hash))
  hash must equal hex(HMAC_SHA256(key=secret_key, msg=data_check_string))
"""

import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from urllib.parse import parse_qsl

from src.pay_common.errors import InvalidTelegramAuthError


@dataclass(frozen=True)
class TelegramUser:
    telegram_id: str
    username: str | None
    first_name: str | None = None


def _secret_key(bot_token: str) -> bytes:
    return hmac.new(b"WebAppData", bot_token.encode(), hashlib.sha256).digest()


def sign_init_data(fields: dict[str, str], bot_token: str) -> str:
    """Compute the hash Telegram would attach to `fields`."""
    check_string = "\n".join(f"{k}={v}" for k, v in sorted(fields.items()))
    return hmac.new(_secret_key(bot_token), check_string.encode(), hashlib.sha256).hexdigest()


def validate_init_data(
    init_data: str,
    bot_token: str,
    max_age_seconds: int,
    now: float | None = None,
) -> TelegramUser:
    if not bot_token:
        raise InvalidTelegramAuthError("bot token is not configured")

    fields = dict(parse_qsl(init_data, keep_blank_values=True))
    received_hash = fields.pop("hash", None)
    if not received_hash:
        raise InvalidTelegramAuthError("hash is missing")

    expected = sign_init_data(fields, bot_token)
    if not hmac.compare_digest(expected, received_hash):
        raise InvalidTelegramAuthError("signature mismatch")

    try:
        auth_date = int(fields["auth_date"])
    except (KeyError, ValueError):
        raise InvalidTelegramAuthError("auth_date is missing") from None
    current = time.time() if now is None else now
    if max_age_seconds > 0 and current - auth_date > max_age_seconds:
        raise InvalidTelegramAuthError("init data expired")

    try:
        user = json.loads(fields["user"])
        telegram_id = str(user["id"])
    except (KeyError, ValueError, TypeError):
        raise InvalidTelegramAuthError("user is missing") from None

    return TelegramUser(
        telegram_id=telegram_id,
        username=user.get("username"),
        first_name=user.get("first_name"),
    )
