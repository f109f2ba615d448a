from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import uuid
from typing import Protocol

from ...schemas.admin import Principal


@dataclass(frozen=True)
class SessionToken:
    """An authenticated session issued by the hosted auth service."""

    subject: uuid.UUID
    expires_at: datetime | None = None


class CredentialSource(Protocol):
    """Anything carrying request headers and cookies (HTTP or WebSocket)."""

    headers: object
    cookies: object


class SessionResolver(Protocol):
    async def get_current_session(
        self, source: CredentialSource
    ) -> SessionToken | None:
        ...

    async def get_principal_for_session(
        self, token: SessionToken
    ) -> Principal | None:
        ...
