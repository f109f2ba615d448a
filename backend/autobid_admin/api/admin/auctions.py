"""
Auction monitoring endpoints.

- GET  /admin/auctions/monitor            - ordered monitoring list
- POST /admin/auctions/{auction_id}/flag  - flag an auction (audited)
- WS   /admin/auctions/monitor/stream     - live list, pushed on timer and on change

The stream applies the same checks as the read endpoint. A rejected
handshake is accepted and then closed with 4401 (no session) or 4403
(forbidden); a feed that dies under an open stream closes it with 1011.
"""
from __future__ import annotations

import asyncio
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Response, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...auth.dependencies import require_operation
from ...auth.guard import RequestGuard
from ...config import settings
from ...dependencies import (
    ResolverScope,
    get_change_notifier,
    get_db,
    get_db_session_factory,
    get_scoped_session_resolver,
)
from ...domain.ports.notifications import ChangeNotifier
from ...errors import AppError, AuthError, InternalError, PermissionError, error_payload
from ...rbac.operations import permission_for_operation
from ...schemas.admin import Principal
from ...schemas.auction import FlagAuctionRequest, MonitorItem
from ...services.admin_actions import AdminActionService
from ...services.monitoring import (
    MonitorFetcher,
    MonitoringFeed,
    MonitoringService,
    session_scoped_fetcher,
)

logger = logging.getLogger("autobid_admin.monitoring")

WS_CLOSE_UNAUTHENTICATED = 4401
WS_CLOSE_FORBIDDEN = 4403
WS_CLOSE_FEED_FAILED = 1011

STREAM_PATH = "/admin/auctions/monitor/stream"

router = APIRouter(prefix="/admin/auctions", tags=["admin-auctions"])


def get_action_service(
    db: AsyncSession = Depends(get_db),
    notifier: ChangeNotifier = Depends(get_change_notifier),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory),
) -> AdminActionService:
    return AdminActionService(
        db,
        notifier=notifier,
        channel=settings.monitor_channel,
        audit_mode=settings.audit_mode,
        session_factory=session_factory,
    )


def get_monitor_fetcher(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_session_factory),
) -> MonitorFetcher:
    return session_scoped_fetcher(session_factory)


@router.get("/monitor", response_model=list[MonitorItem])
async def list_monitored_auctions(
    _: Principal = Depends(require_operation("GET", "/admin/auctions/monitor")),
    db: AsyncSession = Depends(get_db),
) -> list[MonitorItem]:
    return await MonitoringService(db).list_items()


@router.post("/{auction_id}/flag", status_code=status.HTTP_204_NO_CONTENT)
async def flag_auction(
    auction_id: UUID,
    payload: FlagAuctionRequest,
    principal: Principal = Depends(
        require_operation("POST", "/admin/auctions/{auction_id}/flag")
    ),
    service: AdminActionService = Depends(get_action_service),
) -> Response:
    await service.flag_auction(principal, auction_id, payload.reason)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.websocket("/monitor/stream")
async def stream_monitored_auctions(
    websocket: WebSocket,
    resolver_scope: ResolverScope = Depends(get_scoped_session_resolver),
    notifier: ChangeNotifier = Depends(get_change_notifier),
    fetch: MonitorFetcher = Depends(get_monitor_fetcher),
) -> None:
    try:
        async with resolver_scope() as resolver:
            principal = await RequestGuard(resolver).authorize(
                websocket,
                permission_for_operation("WS", STREAM_PATH),
                operation=f"WS {STREAM_PATH}",
            )
    except AuthError:
        await reject(websocket, WS_CLOSE_UNAUTHENTICATED)
        return
    except PermissionError:
        await reject(websocket, WS_CLOSE_FORBIDDEN)
        return

    await websocket.accept()
    logger.info("Monitoring stream opened admin_id=%s", principal.id)

    async def push(items: list[MonitorItem]) -> None:
        await websocket.send_json(
            {
                "type": "snapshot",
                "items": [item.model_dump(mode="json", by_alias=True) for item in items],
            }
        )

    async def push_error(exc: Exception) -> None:
        if isinstance(exc, AppError):
            payload = error_payload(exc.code, exc.message, exc.details)
        else:
            logger.error("Monitoring stream refresh failed: %s", exc, exc_info=exc)
            payload = error_payload(InternalError.code, InternalError.message)
        await websocket.send_json({"type": "error", **payload})

    feed = MonitoringFeed(
        fetch,
        notifier,
        on_update=push,
        on_error=push_error,
        channel=settings.monitor_channel,
        interval_seconds=settings.monitor_refresh_seconds,
    )
    async with feed:
        receiver = asyncio.create_task(drain_until_disconnect(websocket))
        stopped = asyncio.create_task(feed.wait_stopped())
        done, pending = await asyncio.wait(
            {receiver, stopped}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        if receiver in done:
            receiver.result()
        else:
            logger.warning(
                "Monitoring feed stopped under open stream admin_id=%s: %s",
                principal.id,
                feed.failure,
            )
            await websocket.close(code=WS_CLOSE_FEED_FAILED)
    logger.info("Monitoring stream closed admin_id=%s", principal.id)


async def reject(websocket: WebSocket, code: int) -> None:
    # Closing before accept() becomes an HTTP 403 under ASGI servers and the
    # close code never reaches the client
    await websocket.accept()
    await websocket.close(code=code)


async def drain_until_disconnect(websocket: WebSocket) -> None:
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return
