"""
GymBuddy — Generic row store and insert change feed.

Services never talk to SQLAlchemy directly.  They read and write plain
``dict`` rows through a :class:`RowStore`:

  get_by_id(table, id)        -> row | None
  list(table, filters)        -> [row, ...]   (equality / membership filters)
  insert(table, row)          -> row          (publishes to the change feed,
                                               on commit for the SQL backend)
  update(table, id, patch)    -> row          (RowNotFoundError if missing)

Two backends are provided: :class:`SqlAlchemyRowStore` over an
``AsyncSession`` and :class:`InMemoryRowStore` for tests and local runs.
"""

from __future__ import annotations

import asyncio
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Mapping

import structlog
from sqlalchemy import event, inspect, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from gymbuddy.models import FitnessProfile, Match, Message, Profile, Workout

logger = structlog.get_logger("gymbuddy.store")

Row = dict[str, Any]
Filters = Mapping[str, Any]

TABLE_MODELS: dict[str, type] = {
    "profiles": Profile,
    "fitness_profiles": FitnessProfile,
    "matches": Match,
    "messages": Message,
    "workouts": Workout,
}


class StoreError(Exception):
    """Any failure while reading from or writing to the row store."""


class RowNotFoundError(StoreError):
    def __init__(self, table: str, row_id: Any) -> None:
        super().__init__(f"{table} row {row_id} not found")
        self.table = table
        self.row_id = row_id


def _normalise(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


def row_matches(row: Mapping[str, Any], filters: Filters | None) -> bool:
    """Return True when ``row`` satisfies every filter.

    A list, tuple or set filter value means membership; anything else is
    compared for equality.  UUIDs and their string forms compare equal.
    """
    if not filters:
        return True
    for column, expected in filters.items():
        actual = _normalise(row.get(column))
        if isinstance(expected, (list, tuple, set, frozenset)):
            if actual not in {_normalise(v) for v in expected}:
                return False
        elif actual != _normalise(expected):
            return False
    return True


# ──────────────────────────────────────────────────────────────────────────────
# Change feed
# ──────────────────────────────────────────────────────────────────────────────

class Subscription:
    """Async iterator over rows inserted into one table.

    Registered as soon as it is created, so inserts published before the
    consumer first awaits are not lost.  ``close()`` (or leaving an
    ``async with`` block) detaches it from the feed.
    """

    def __init__(self, feed: "ChangeFeed", table: str, filters: Filters | None) -> None:
        self.table = table
        self.filters = dict(filters or {})
        self._feed = feed
        self._queue: asyncio.Queue[Row] = asyncio.Queue()
        self.closed = False

    def _offer(self, row: Row) -> None:
        if not self.closed and row_matches(row, self.filters):
            self._queue.put_nowait(deepcopy(row))

    def __aiter__(self) -> "Subscription":
        return self

    async def __anext__(self) -> Row:
        if self.closed:
            raise StopAsyncIteration
        return await self._queue.get()

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._feed._detach(self)

    async def __aenter__(self) -> "Subscription":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()


class ChangeFeed:
    """In-process pub/sub of row-insert events, keyed by table name."""

    def __init__(self) -> None:
        self._subscriptions: dict[str, list[Subscription]] = defaultdict(list)

    def subscribe(self, table: str, filters: Filters | None = None) -> Subscription:
        subscription = Subscription(self, table, filters)
        self._subscriptions[table].append(subscription)
        logger.debug("change_feed.subscribed", table=table, filters=subscription.filters)
        return subscription

    def publish(self, table: str, row: Row) -> None:
        for subscription in list(self._subscriptions.get(table, ())):
            subscription._offer(row)

    def subscriber_count(self, table: str) -> int:
        return len(self._subscriptions.get(table, ()))

    def _detach(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.table, [])
        if subscription in subscribers:
            subscribers.remove(subscription)
        logger.debug("change_feed.unsubscribed", table=subscription.table)


_change_feed: ChangeFeed | None = None


def get_change_feed() -> ChangeFeed:
    """Process-wide change feed shared by every store instance."""
    global _change_feed
    if _change_feed is None:
        _change_feed = ChangeFeed()
    return _change_feed


# ──────────────────────────────────────────────────────────────────────────────
# Commit-bound publishing for the SQL backend
# ──────────────────────────────────────────────────────────────────────────────

_PENDING_EVENTS_KEY = "gymbuddy.pending_feed_events"


def _queue_until_commit(session_info: dict, feed: ChangeFeed, table: str, row: Row) -> None:
    session_info.setdefault(_PENDING_EVENTS_KEY, []).append((feed, table, row))


@event.listens_for(Session, "after_commit")
def _publish_committed(session: Session) -> None:
    for feed, table, row in session.info.pop(_PENDING_EVENTS_KEY, []):
        feed.publish(table, row)


@event.listens_for(Session, "after_rollback")
def _discard_rolled_back(session: Session) -> None:
    dropped = session.info.pop(_PENDING_EVENTS_KEY, [])
    if dropped:
        logger.info("change_feed.discarded", count=len(dropped))


# ──────────────────────────────────────────────────────────────────────────────
# Store interface
# ──────────────────────────────────────────────────────────────────────────────

class RowStore(ABC):
    def __init__(self, feed: ChangeFeed | None = None) -> None:
        self.feed = feed if feed is not None else get_change_feed()

    @abstractmethod
    async def get_by_id(self, table: str, row_id: Any) -> Row | None: ...

    @abstractmethod
    async def list(self, table: str, filters: Filters | None = None) -> list[Row]: ...

    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row: ...

    @abstractmethod
    async def update(self, table: str, row_id: Any, patch: Row) -> Row: ...


class InMemoryRowStore(RowStore):
    """Dict-backed store.  Rows are copied in and out so callers cannot
    mutate stored state by accident."""

    def __init__(self, feed: ChangeFeed | None = None) -> None:
        super().__init__(feed)
        self._tables: dict[str, dict[str, Row]] = defaultdict(dict)

    async def get_by_id(self, table: str, row_id: Any) -> Row | None:
        row = self._tables[table].get(str(row_id))
        return deepcopy(row) if row is not None else None

    async def list(self, table: str, filters: Filters | None = None) -> list[Row]:
        return [
            deepcopy(row)
            for row in self._tables[table].values()
            if row_matches(row, filters)
        ]

    async def insert(self, table: str, row: Row) -> Row:
        stored = deepcopy(row)
        if stored.get("id") is None:
            stored["id"] = uuid.uuid4()
        key = str(stored["id"])
        if key in self._tables[table]:
            raise StoreError(f"{table} row {key} already exists")
        stored.setdefault("created_at", datetime.now(timezone.utc))
        self._tables[table][key] = stored

        logger.debug("store.insert", backend="memory", table=table, row_id=key)
        self.feed.publish(table, stored)
        return deepcopy(stored)

    async def update(self, table: str, row_id: Any, patch: Row) -> Row:
        stored = self._tables[table].get(str(row_id))
        if stored is None:
            raise RowNotFoundError(table, row_id)
        stored.update(deepcopy(patch))
        stored["updated_at"] = datetime.now(timezone.utc)

        logger.debug("store.update", backend="memory", table=table, row_id=str(row_id))
        return deepcopy(stored)


class SqlAlchemyRowStore(RowStore):
    """Row store over an ``AsyncSession``.

    Writes are flushed but not committed; the request-scoped ``get_db``
    dependency owns the transaction.  Insert events reach the change feed
    only after that transaction commits and are dropped on rollback.
    """

    def __init__(self, session: AsyncSession, feed: ChangeFeed | None = None) -> None:
        super().__init__(feed)
        self.session = session

    @staticmethod
    def _model(table: str) -> type:
        try:
            return TABLE_MODELS[table]
        except KeyError:
            raise StoreError(f"Unknown table {table!r}") from None

    @staticmethod
    def _to_row(obj: Any) -> Row:
        mapper = inspect(type(obj))
        return {attr.key: getattr(obj, attr.key) for attr in mapper.column_attrs}

    @staticmethod
    def _coerce_id(row_id: Any) -> Any:
        if isinstance(row_id, str):
            try:
                return uuid.UUID(row_id)
            except ValueError:
                return row_id
        return row_id

    async def get_by_id(self, table: str, row_id: Any) -> Row | None:
        model = self._model(table)
        try:
            obj = await self.session.get(model, self._coerce_id(row_id))
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to read {table} row {row_id}") from exc
        return self._to_row(obj) if obj is not None else None

    async def list(self, table: str, filters: Filters | None = None) -> list[Row]:
        model = self._model(table)
        stmt = select(model)
        for column, expected in (filters or {}).items():
            attr = getattr(model, column)
            if isinstance(expected, (list, tuple, set, frozenset)):
                stmt = stmt.where(attr.in_([self._coerce_id(v) for v in expected]))
            else:
                stmt = stmt.where(attr == self._coerce_id(expected))
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to list {table}") from exc
        return [self._to_row(obj) for obj in result.scalars().all()]

    async def insert(self, table: str, row: Row) -> Row:
        model = self._model(table)
        obj = model(**row)
        try:
            self.session.add(obj)
            await self.session.flush()
            await self.session.refresh(obj)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to insert into {table}") from exc

        stored = self._to_row(obj)
        logger.debug("store.insert", backend="sql", table=table, row_id=str(stored["id"]))
        _queue_until_commit(self.session.info, self.feed, table, stored)
        return stored

    async def update(self, table: str, row_id: Any, patch: Row) -> Row:
        model = self._model(table)
        try:
            obj = await self.session.get(model, self._coerce_id(row_id))
            if obj is None:
                raise RowNotFoundError(table, row_id)
            for column, value in patch.items():
                setattr(obj, column, value)
            await self.session.flush()
            await self.session.refresh(obj)
        except SQLAlchemyError as exc:
            raise StoreError(f"Failed to update {table} row {row_id}") from exc

        logger.debug("store.update", backend="sql", table=table, row_id=str(row_id))
        return self._to_row(obj)
