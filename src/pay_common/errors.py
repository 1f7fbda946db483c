"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth / operators
  2xxx: Account / ledger
  3xxx: Payment requests
  4xxx: Deposits
  9xxx: System / validation
"""

from decimal import Decimal
from typing import Any


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.details = details
        super().__init__(message)


# --- 1xxx: Auth / operators ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Invalid credentials", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Account is disabled", 403)


class ForbiddenError(AppError):
    def __init__(self, detail: str = "Forbidden") -> None:
        super().__init__(1003, detail, 403)


class InvalidTelegramAuthError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(1004, f"Invalid Telegram auth data: {detail}", 401)


class LoginExistsError(AppError):
    def __init__(self, login: str) -> None:
        super().__init__(1005, f"Login already in use: {login}", 409)


class OperatorNotFoundError(AppError):
    def __init__(self, operator_id: str) -> None:
        super().__init__(1008, f"Operator not found: {operator_id}", 404)


# --- 2xxx: Account / ledger ---

class InsufficientFundsError(AppError):
    def __init__(self, required: Decimal, available: Decimal) -> None:
        self.required = required
        self.available = available
        self.shortfall = required - available
        super().__init__(
            2001,
            f"Insufficient funds: required {required} USDT, available {available} USDT, "
            f"short by {self.shortfall} USDT",
            422,
            details={
                "required": str(required),
                "available": str(available),
                "shortfall": str(self.shortfall),
            },
        )


class AccountNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}", 404)


class FrozenBalanceUnderflowError(AppError):
    def __init__(self, requested: Decimal, frozen: Decimal) -> None:
        super().__init__(
            2003,
            f"Cannot remove {requested} USDT from frozen balance of {frozen} USDT",
            409,
        )


# --- 3xxx: Payment requests ---

class PaymentRequestNotFoundError(AppError):
    def __init__(self, request_id: str) -> None:
        super().__init__(3001, f"Payment request not found: {request_id}", 404)


class AlreadyFinalizedError(AppError):
    """Transition attempted on an entity already in a terminal state."""

    def __init__(self, code: int, entity: str, entity_id: str, status: str) -> None:
        self.status = status
        super().__init__(code, f"{entity} {entity_id} is already {status}", 409)


class PaymentRequestFinalizedError(AlreadyFinalizedError):
    def __init__(self, request_id: str, status: str) -> None:
        super().__init__(3002, "Payment request", request_id, status)


class ValidationError(AppError):
    """Malformed input or an amount outside configured bounds."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422)


class InvalidTransitionError(ValidationError):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(3003, f"Cannot move payment request from {current} to {target}")


# --- 4xxx: Deposits ---

class DepositNotFoundError(AppError):
    def __init__(self, reference: str) -> None:
        super().__init__(4001, f"Deposit not found: {reference}", 404)


class DepositFinalizedError(AlreadyFinalizedError):
    def __init__(self, deposit_id: str, status: str) -> None:
        super().__init__(4002, "Deposit", deposit_id, status)


class AmountExhaustedError(AppError):
    def __init__(self, requested: Decimal) -> None:
        super().__init__(
            4003,
            f"Too many active deposits close to {requested} USDT; retry later",
            409,
        )


class DepositAmountOutOfRangeError(ValidationError):
    def __init__(self, amount: Decimal, minimum: Decimal, maximum: Decimal) -> None:
        super().__init__(
            4004, f"Deposit amount {amount} USDT outside [{minimum}, {maximum}] USDT"
        )


class DuplicateTransactionError(AppError):
    def __init__(self, tx_hash: str) -> None:
        super().__init__(4005, f"Transaction already applied: {tx_hash}", 409)


class PayableAmountConflictError(AppError):
    def __init__(self, payable_amount: Decimal) -> None:
        super().__init__(
            4006, f"Payable amount {payable_amount} USDT was taken concurrently; retry", 409
        )


# --- 9xxx: System / validation ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class InvalidAmountError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, detail)


class ConcurrentUpdateError(AppError):
    def __init__(self, entity: str, entity_id: str) -> None:
        super().__init__(9004, f"{entity} {entity_id} was modified concurrently", 409)


class RateUnavailableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9005, f"Exchange rate unavailable: {detail}", 503)
