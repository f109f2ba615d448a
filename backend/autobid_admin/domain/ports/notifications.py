from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from typing import Any, AsyncIterator, Protocol


class ChangeNotifier(Protocol):
    async def publish(self, channel: str, event: dict[str, Any]) -> int:
        ...

    def subscribe(
        self, channel: str
    ) -> AbstractAsyncContextManager[AsyncIterator[dict[str, Any]]]:
        ...
