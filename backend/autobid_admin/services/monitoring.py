"""Live auction monitoring: ordered reads and a refreshing feed.

Ordering is auctions in their final two minutes first, then by time
remaining ascending. The feed refetches on a fixed interval and whenever a
change event for the monitoring table arrives.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from typing import Any, AsyncIterator, Awaitable, Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..crud.auction_monitoring import AuctionMonitoringRepository
from ..domain.ports.notifications import ChangeNotifier
from ..errors import BackendError
from ..models.auction_monitoring import AuctionMonitoring
from ..schemas.auction import MonitorItem

logger = logging.getLogger("autobid_admin.monitoring")

MONITORING_TABLE = AuctionMonitoring.__tablename__

MonitorFetcher = Callable[[], Awaitable[list[MonitorItem]]]
UpdateCallback = Callable[[list[MonitorItem]], Awaitable[None]]
ErrorCallback = Callable[[Exception], Awaitable[None]]


def sort_monitor_items(items: Iterable[MonitorItem]) -> list[MonitorItem]:
    return sorted(
        items,
        key=lambda item: (not item.is_final_two_minutes, item.time_remaining_seconds),
    )


class MonitoringService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = AuctionMonitoringRepository(session)

    async def list_items(self, limit: int | None = None) -> list[MonitorItem]:
        try:
            rows = await self.repo.list_ordered(limit=limit)
        except SQLAlchemyError as exc:
            logger.error("Monitoring query failed: %s", exc)
            raise BackendError(str(exc)) from exc
        return sort_monitor_items(MonitorItem.model_validate(row) for row in rows)


def session_scoped_fetcher(
    session_factory: async_sessionmaker[AsyncSession],
) -> MonitorFetcher:
    """Fetch with a fresh session each time so no stale rows are reused."""

    async def fetch() -> list[MonitorItem]:
        async with session_factory() as session:
            return await MonitoringService(session).list_items()

    return fetch


class MonitoringFeed:
    """Timer plus change subscription driving refreshes of the monitor list.

    Use as ``async with``: entering subscribes, starts the interval task and
    fetches once; leaving cancels the timer and releases the subscription,
    even when the body raised. If the timer or the listener dies, the
    failure goes to ``on_error`` and the feed tears itself down;
    ``wait_stopped`` returns once that has happened.
    """

    def __init__(
        self,
        fetch: MonitorFetcher,
        notifier: ChangeNotifier,
        *,
        on_update: UpdateCallback,
        on_error: ErrorCallback | None = None,
        channel: str,
        interval_seconds: float,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be greater than 0")
        self._fetch = fetch
        self._notifier = notifier
        self._on_update = on_update
        self._on_error = on_error
        self._channel = channel
        self._interval = interval_seconds
        self._refresh_lock = asyncio.Lock()
        self._stack: AsyncExitStack | None = None
        self._tasks: list[asyncio.Task[None]] = []
        self._teardown: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()
        self.failure: Exception | None = None

    @property
    def running(self) -> bool:
        return self._stack is not None

    async def __aenter__(self) -> "MonitoringFeed":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()
        if self._teardown is not None:
            await self._teardown

    async def start(self) -> None:
        if self._stack is not None:
            return
        self._stopped.clear()
        self.failure = None
        stack = AsyncExitStack()
        try:
            events = await stack.enter_async_context(self._notifier.subscribe(self._channel))
            self._stack = stack
            self._tasks = [
                asyncio.create_task(self._supervise(self._timer_loop(), "timer")),
                asyncio.create_task(self._supervise(self._listen(events), "listener")),
            ]
        except BaseException:
            await stack.aclose()
            raise
        logger.debug("Monitoring feed started channel=%s interval=%ss", self._channel, self._interval)
        try:
            await self.refresh()
        except BaseException:
            await self.stop()
            raise

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        stack, self._stack = self._stack, None
        if stack is not None:
            await stack.aclose()
            logger.debug("Monitoring feed stopped channel=%s", self._channel)
        self._stopped.set()

    async def wait_stopped(self) -> None:
        await self._stopped.wait()

    async def refresh(self) -> None:
        """Fetch, sort and deliver the list. Fetch failures go to ``on_error``."""
        async with self._refresh_lock:
            try:
                items = sort_monitor_items(await self._fetch())
            except Exception as exc:
                await self._report(exc)
                return
            await self._on_update(items)

    async def _report(self, exc: Exception) -> None:
        if self._on_error is None:
            logger.error("Monitoring refresh failed: %s", exc)
            return
        try:
            await self._on_error(exc)
        except Exception as callback_exc:
            logger.warning("Monitoring error callback failed: %s", callback_exc)

    async def _supervise(self, body: Awaitable[None], name: str) -> None:
        try:
            await body
        except Exception as exc:
            logger.error("Monitoring %s failed channel=%s: %s", name, self._channel, exc)
            self.failure = exc
            await self._report(exc)
            # stop() cancels and awaits this task, so it runs as its own task
            self._teardown = asyncio.create_task(self.stop())

    async def _timer_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            await self.refresh()

    async def _listen(self, events: AsyncIterator[dict[str, Any]]) -> None:
        async for event in events:
            table = event.get("table")
            if table is not None and table != MONITORING_TABLE:
                continue
            await self.refresh()
        raise ConnectionError(f"Change subscription on {self._channel} ended")
