"""In-process publish/subscribe for change notifications.

One bus lives on the application (``app.state.events``).  Repositories and
the workflow publish after a successful write; the websocket feed and the
push notifier subscribe.
"""
from __future__ import annotations

import inspect
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Union

logger = logging.getLogger(__name__)

Handler = Callable[[str, dict[str, Any]], Union[None, Awaitable[None]]]

WILDCARD = "*"

SESSION_CHANGED = "session.changed"
BENEFICIARY_CREATED = "beneficiary.created"
BENEFICIARY_UPDATED = "beneficiary.updated"
BENEFICIARY_STATUS_CHANGED = "beneficiary.status_changed"
CENTER_CREATED = "center.created"
CENTER_UPDATED = "center.updated"
CENTER_DELETED = "center.deleted"
SCHEDULE_CREATED = "schedule.created"
SCHEDULE_DISTRIBUTED = "schedule.distributed"
USER_CREATED = "user.created"
USER_UPDATED = "user.updated"
USER_DELETED = "user.deleted"


class EventBus:
    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, topic: str, handler: Handler) -> Callable[[], None]:
        self._handlers[topic].append(handler)

        def unsubscribe() -> None:
            try:
                self._handlers[topic].remove(handler)
            except ValueError:
                pass

        return unsubscribe

    def subscriber_count(self, topic: str) -> int:
        return len(self._handlers.get(topic, []))

    async def publish(self, topic: str, payload: dict[str, Any] | None = None) -> None:
        payload = payload or {}
        handlers = list(self._handlers.get(topic, [])) + list(self._handlers.get(WILDCARD, []))
        for handler in handlers:
            try:
                result = handler(topic, payload)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                # A broken subscriber must not fail the write that triggered it
                logger.exception(f"Event handler failed for {topic}")
