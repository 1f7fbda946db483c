"""Fixed-precision money helpers.

All balances and amounts are `Decimal`; binary floats never touch money.
  - USDT (settlement currency): 8 fractional digits
  - RUB (request currency):     2 fractional digits
  - exchange rates:             8 fractional digits
  - deposit payable amounts:    4 fractional digits (matcher granularity)
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

USDT_QUANT = Decimal("0.00000001")
RUB_QUANT = Decimal("0.01")
RATE_QUANT = Decimal("0.00000001")
ZERO = Decimal("0")

# Edits smaller than this are treated as "amount unchanged"
RUB_EDIT_EPSILON = Decimal("0.01")


def to_decimal(value: object) -> Decimal:
    """Coerce str/int/Decimal to Decimal. Floats go through str() to avoid binary noise."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        value = str(value)
    try:
        return Decimal(value)  # type: ignore[arg-type]
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a decimal amount: {value!r}") from exc


def to_usdt(value: object) -> Decimal:
    return to_decimal(value).quantize(USDT_QUANT, rounding=ROUND_HALF_UP)


def to_rub(value: object) -> Decimal:
    return to_decimal(value).quantize(RUB_QUANT, rounding=ROUND_HALF_UP)


def to_rate(value: object) -> Decimal:
    return to_decimal(value).quantize(RATE_QUANT, rounding=ROUND_HALF_UP)


def round_places(value: object, places: int) -> Decimal:
    return to_decimal(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def rub_to_usdt(amount_rub: Decimal, rate: Decimal) -> Decimal:
    """Convert at a RUB-per-USDT rate, rounded to USDT precision."""
    if rate <= ZERO:
        raise ValueError(f"Exchange rate must be positive, got {rate}")
    return to_usdt(to_rub(amount_rub) / rate)


def _group(amount: Decimal, places: int) -> str:
    text = f"{amount:,.{places}f}"
    return text.replace(",", " ")


def usdt_display(amount: Decimal, places: int = 2) -> str:
    """Decimal(1234.5) -> '1 234.50 USDT' (non-breaking space grouping)."""
    return f"{_group(amount, places)} USDT"


def rub_display(amount: Decimal) -> str:
    """Decimal(150000) -> '150 000.00 ₽'."""
    return f"{_group(amount, 2)} ₽"
