"""Reject duplicate submissions of the same mutating action on one record."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from food_portal.errors import OperationInProgress


class InFlightRegistry:
    def __init__(self) -> None:
        self._active: set[tuple[str, str]] = set()

    def is_busy(self, action: str, key: str) -> bool:
        return (action, key) in self._active

    @asynccontextmanager
    async def claim(self, action: str, key: str) -> AsyncIterator[None]:
        marker = (action, key)
        if marker in self._active:
            raise OperationInProgress(action, key)
        self._active.add(marker)
        try:
            yield
        finally:
            self._active.discard(marker)
