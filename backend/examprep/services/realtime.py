"""In-process change feed for realtime views.

Writers publish a change after committing it; views subscribe to a table
(optionally filtered by column values) and re-fetch on every notice. A
subscription is a handle that must be released when its view goes away;
using it as a context manager guarantees that.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import uuid4

logger = logging.getLogger(__name__)

REALTIME_TABLES = ("user_progress", "leaderboard")


@dataclass(frozen=True)
class ChangeEvent:
    table: str
    event: str  # INSERT, UPDATE
    record: dict[str, Any]
    at: datetime = field(default_factory=datetime.utcnow)

    def as_message(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "event": self.event,
            "record": self.record,
            "at": self.at.isoformat(),
        }


class Subscription:
    """Handle returned by RealtimeHub.subscribe."""

    def __init__(self, hub: "RealtimeHub", key: str):
        self._hub = hub
        self._key = key

    @property
    def active(self) -> bool:
        return self._key in self._hub._subscribers

    def unsubscribe(self) -> None:
        self._hub._subscribers.pop(self._key, None)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info) -> None:
        self.unsubscribe()


@dataclass
class _Subscriber:
    table: str
    on_change: Callable[[ChangeEvent], None]
    filters: dict[str, Any]

    def matches(self, event: ChangeEvent) -> bool:
        if event.table != self.table:
            return False
        return all(event.record.get(k) == v for k, v in self.filters.items())


class RealtimeHub:
    """Fan-out of table changes to in-process subscribers."""

    def __init__(self) -> None:
        self._subscribers: dict[str, _Subscriber] = {}

    def subscribe(
        self,
        table: str,
        on_change: Callable[[ChangeEvent], None],
        filters: dict[str, Any] | None = None,
    ) -> Subscription:
        if table not in REALTIME_TABLES:
            raise ValueError(f"Unknown realtime table: {table}")
        key = str(uuid4())
        self._subscribers[key] = _Subscriber(table=table, on_change=on_change, filters=filters or {})
        logger.debug(f"Subscribed {key} to {table} {filters or ''}")
        return Subscription(self, key)

    def publish(self, table: str, event: str, record: dict[str, Any]) -> int:
        """Deliver a change to every matching subscriber; returns how many got it."""
        change = ChangeEvent(table=table, event=event, record=record)
        delivered = 0
        for key, subscriber in list(self._subscribers.items()):
            if not subscriber.matches(change):
                continue
            try:
                subscriber.on_change(change)
                delivered += 1
            except Exception:
                # One broken listener must not starve the others.
                logger.exception(f"Realtime subscriber {key} failed on {table} change")
        return delivered

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def clear(self) -> None:
        self._subscribers.clear()


realtime_hub = RealtimeHub()
