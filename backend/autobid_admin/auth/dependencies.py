"""FastAPI dependencies that put the request guard in front of admin endpoints."""
from __future__ import annotations

from typing import Awaitable, Callable

from fastapi import Depends, Request

from ..dependencies import get_request_guard
from ..rbac.operations import permission_for_operation
from ..schemas.admin import Principal
from .guard import RequestGuard


def require_operation(method: str, path: str) -> Callable[..., Awaitable[Principal]]:
    """Enforce the capability declared for ``(method, path)``.

    The lookup happens once, when the route is declared, so an undeclared
    operation fails at import time instead of being served unguarded.
    """
    permission = permission_for_operation(method, path)
    operation = f"{method.upper()} {path}"

    async def dependency(
        request: Request,
        guard: RequestGuard = Depends(get_request_guard),
    ) -> Principal:
        return await guard.authorize(request, permission, operation=operation)

    return dependency
