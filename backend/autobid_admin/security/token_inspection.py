import uuid
from datetime import datetime, timezone
from typing import Any, Dict

import jwt

from ..config import settings


class InvalidTokenError(Exception):
    """Raised when a token cannot be parsed or is malformed."""


class ExpiredTokenError(Exception):
    """Raised when a token has expired."""


def _parse_token_payload(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise ExpiredTokenError from exc
    except jwt.InvalidTokenError as exc:
        raise InvalidTokenError from exc


def validate_access_token(token: str) -> Dict[str, Any]:
    payload = _parse_token_payload(token)

    subject = payload.get("sub")
    if not isinstance(subject, str):
        raise InvalidTokenError()
    try:
        uuid.UUID(subject)
    except ValueError:
        raise InvalidTokenError() from None

    return payload


def token_expiry(payload: Dict[str, Any]) -> datetime | None:
    exp = payload.get("exp")
    if isinstance(exp, (int, float)):
        return datetime.fromtimestamp(exp, tz=timezone.utc)
    return None
