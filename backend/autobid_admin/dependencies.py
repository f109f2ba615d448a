from collections.abc import AsyncGenerator, AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .auth.guard import RequestGuard
from .config import settings
from .database import get_session, get_session_factory
from .domain.ports.notifications import ChangeNotifier
from .domain.ports.session import SessionResolver
from .infrastructure.redis import get_redis
from .rbac.routes import ROUTE_PERMISSIONS, RouteAccessMap
from .security.session_resolver import DatabaseSessionResolver


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


def get_db_session_factory() -> async_sessionmaker[AsyncSession]:
    return get_session_factory()


def get_session_resolver(db: AsyncSession = Depends(get_db)) -> SessionResolver:
    return DatabaseSessionResolver(db)


ResolverScope = Callable[[], AbstractAsyncContextManager[SessionResolver]]


def get_scoped_session_resolver(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory),
) -> ResolverScope:
    """Resolver over a session that closes when the ``async with`` block ends.

    For long-lived handlers, where a request-scoped session would stay
    checked out until the handler returns.
    """

    @asynccontextmanager
    async def scope() -> AsyncIterator[SessionResolver]:
        async with session_factory() as session:
            yield DatabaseSessionResolver(session)

    return scope


def get_request_guard(
    resolver: SessionResolver = Depends(get_session_resolver),
) -> RequestGuard:
    return RequestGuard(resolver)


def get_change_notifier() -> ChangeNotifier:
    return get_redis()


@lru_cache(maxsize=2)
def _route_map_for(policy: str) -> RouteAccessMap:
    return RouteAccessMap(ROUTE_PERMISSIONS, default_policy=policy)


def get_route_map() -> RouteAccessMap:
    return _route_map_for(settings.route_default_policy)
