"""Resolve the caller's session and admin principal from the data backend.

Credentials are issued and signed by the hosted auth service; this module
only reads them. Any failure resolves to "no session" or "no principal",
never to an exception carrying details.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any, Mapping

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..crud.admin_user import AdminUserRepository
from ..domain.ports.session import CredentialSource, SessionToken
from ..schemas.admin import Principal
from .token_inspection import (
    ExpiredTokenError,
    InvalidTokenError,
    token_expiry,
    validate_access_token,
)

logger = logging.getLogger("autobid_admin.auth")


def extract_credential(source: CredentialSource) -> str | None:
    """Bearer token from the Authorization header, else the session cookie."""
    headers: Mapping[str, Any] = source.headers  # type: ignore[assignment]
    authorization = headers.get("authorization")
    if isinstance(authorization, str):
        scheme, _, credentials = authorization.partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()

    cookies: Mapping[str, Any] = source.cookies  # type: ignore[assignment]
    cookie = cookies.get(settings.session_cookie_name)
    if isinstance(cookie, str) and cookie:
        return cookie
    return None


class DatabaseSessionResolver:
    """SessionResolver backed by signed tokens and the admin_users table."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.admin_users = AdminUserRepository(session)

    async def get_current_session(self, source: CredentialSource) -> SessionToken | None:
        credential = extract_credential(source)
        if credential is None:
            return None
        try:
            payload = validate_access_token(credential)
        except ExpiredTokenError:
            logger.debug("Session token expired")
            return None
        except InvalidTokenError:
            logger.debug("Session token rejected")
            return None
        return SessionToken(
            subject=uuid.UUID(payload["sub"]),
            expires_at=token_expiry(payload),
        )

    async def get_principal_for_session(self, token: SessionToken) -> Principal | None:
        admin_user = await self.admin_users.get_active(token.subject)
        if admin_user is None:
            return None
        return Principal(
            id=admin_user.id,
            email=admin_user.email,
            role=admin_user.role.role_name,
        )
