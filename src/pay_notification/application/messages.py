"""User-facing notification texts (Russian; Telegram variant uses HTML)."""

import html
from dataclasses import dataclass
from decimal import Decimal

from src.pay_common.id_generator import short_number
from src.pay_common.money import rub_display, usdt_display


@dataclass(frozen=True)
class Message:
    in_app: str
    telegram: str


def _with_comment(text: str, label: str, comment: str | None, escape: bool = False) -> str:
    if not comment:
        return text
    return f"{text}\n{label}: {html.escape(comment) if escape else comment}"


def request_paid(
    request_id: str, amount_rub: Decimal, amount_usdt: Decimal, comment: str | None
) -> Message:
    number = short_number(request_id)
    in_app = f"Заявка №{number} оплачена. Сумма: {rub_display(amount_rub)}"
    telegram = (
        "✅ <b>Заявка оплачена</b>\n\n"
        f"Заявка №{number} успешно оплачена.\n"
        f"Сумма: {rub_display(amount_rub)}\n"
        f"USDT: {usdt_display(amount_usdt)}"
    )
    return Message(
        _with_comment(in_app, "Комментарий", comment),
        _with_comment(telegram, "\n💬 Комментарий оператора", comment, escape=True),
    )


def request_rejected(
    request_id: str, amount_rub: Decimal, amount_usdt: Decimal, comment: str | None
) -> Message:
    number = short_number(request_id)
    in_app = f"Заявка №{number} отклонена. Средства возвращены на счет."
    telegram = (
        "❌ <b>Заявка отклонена</b>\n\n"
        f"Заявка №{number} была отклонена.\n"
        f"Сумма: {rub_display(amount_rub)}\n"
        f"Средства в размере {usdt_display(amount_usdt)} возвращены на ваш баланс."
    )
    return Message(
        _with_comment(in_app, "Причина", comment),
        _with_comment(telegram, "\n💬 Причина отказа", comment, escape=True),
    )


def request_cancelled(request_id: str, by_admin: bool) -> Message:
    number = short_number(request_id)
    who = " администратором" if by_admin else ""
    text = f"Заявка №{number} отменена{who}. Средства возвращены на счет."
    return Message(text, f"↩️ {text}")


def deposit_created(requested: Decimal, payable: Decimal, minutes: int) -> Message:
    text = (
        f"Создана заявка на пополнение {requested:.2f} USDT. "
        f"Переведите ровно {payable:.4f} USDT на указанный адрес в течение {minutes} минут."
    )
    return Message(text, text)


def deposit_confirmed(amount: Decimal) -> Message:
    text = f"Депозит на {amount:.2f} USDT подтверждён"
    return Message(text, f"✅ {text}")


def deposit_rejected() -> Message:
    return Message("Депозит отклонён", "❌ Депозит отклонён")


def balance_credited(amount: Decimal, available: Decimal) -> Message:
    text = f"Пополнение счета: +{amount:.2f} USDT. Новый баланс: {available:.2f} USDT"
    return Message(text, f"💰 {text}")


def balance_set(available: Decimal, frozen: Decimal) -> Message:
    text = (
        "Администратор изменил ваш баланс. "
        f"Доступно: {available:.2f} USDT, Заморожено: {frozen:.2f} USDT"
    )
    return Message(text, text)
