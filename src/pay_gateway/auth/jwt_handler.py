"""JWT token creation and verification.

HS256 with one shared JWT_SECRET. Every token carries a `role` claim
(USER / OPERATOR / ADMIN) next to the subject:
  - USER:     sub = accounts.user_id
  - OPERATOR: sub = operators.id
  - ADMIN:    sub = "admin"

No token revocation: operator deactivation is enforced on each request by
`require_staff`, which re-reads the operator row.
"""

from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from config.settings import settings
from src.pay_common.enums import Role
from src.pay_common.errors import InvalidCredentialsError

_ALGORITHM = settings.JWT_ALGORITHM  # "HS256"
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)


def create_access_token(subject: str, role: Role) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": subject,
        "role": role.value,
        "type": "access",
        "iat": now,
        "exp": now + _ACCESS_EXPIRE,
    }
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def decode_token(token: str) -> dict[str, str]:
    """Decode and validate an access token.

    Raises:
        InvalidCredentialsError: signature invalid, expired, wrong type or unknown role.
    """
    try:
        payload: dict[str, str] = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[_ALGORITHM],  # Explicit list prevents algorithm confusion
        )
    except JWTError:
        raise InvalidCredentialsError() from None

    if payload.get("type") != "access" or not payload.get("sub"):
        raise InvalidCredentialsError()
    if payload.get("role") not in {r.value for r in Role}:
        raise InvalidCredentialsError()
    return payload
