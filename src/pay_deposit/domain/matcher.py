"""Payable-amount matcher.

An on-chain observer only sees the transferred amount, so every active
deposit must ask for a distinct one. Given a requested amount R:

  1. round R to `places` fractional digits
  2. if no active deposit holds it, use it unchanged
  3. otherwise probe R - step, R - 2·step, ... and take the first free value
  4. stop after `max_attempts` probes or once the offset exceeds `max_delta`

Probing only downward keeps the payable amount ≤ R. With the defaults
(4 places, step 0.0001, 100 probes, delta 0.01) one requested amount has
101 distinct payable amounts available at a time.

The caller reads the active set and inserts the new deposit in one
transaction under an advisory lock; this module only does the arithmetic.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from config.settings import settings
from src.pay_common.errors import AmountExhaustedError, DepositAmountOutOfRangeError
from src.pay_common.money import ZERO, round_places, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatcherPolicy:
    places: int = 4
    step: Decimal = Decimal("0.0001")
    max_attempts: int = 100
    max_delta: Decimal = Decimal("0.01")

    @classmethod
    def from_settings(cls) -> "MatcherPolicy":
        return cls(
            places=settings.MATCHER_DECIMAL_PLACES,
            step=settings.MATCHER_STEP,
            max_attempts=settings.MATCHER_MAX_ATTEMPTS,
            max_delta=settings.MATCHER_MAX_DELTA,
        )


def validate_requested_amount(amount: Decimal, minimum: Decimal, maximum: Decimal) -> Decimal:
    value = to_decimal(amount)
    if not value.is_finite() or value < minimum or value > maximum:
        raise DepositAmountOutOfRangeError(value, minimum, maximum)
    return value


def pick_payable_amount(
    requested: Decimal,
    taken: Iterable[Decimal],
    policy: MatcherPolicy | None = None,
) -> Decimal:
    """Return the first free payable amount at or below `requested`.

    Raises:
        AmountExhaustedError: every candidate within the bounds is taken.
    """
    policy = policy or MatcherPolicy()
    base = round_places(requested, policy.places)
    occupied = {round_places(a, policy.places) for a in taken}

    if base not in occupied:
        return base

    for attempt in range(1, policy.max_attempts + 1):
        offset = policy.step * attempt
        if offset > policy.max_delta:
            break
        candidate = round_places(base - offset, policy.places)
        if candidate <= ZERO:
            break
        if candidate not in occupied:
            logger.info(
                "Payable amount %s taken, assigned %s after %d probes", base, candidate, attempt
            )
            return candidate

    logger.warning("No free payable amount near %s (%d active)", base, len(occupied))
    raise AmountExhaustedError(base)
