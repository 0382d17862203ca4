"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final, cast

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from entrysync.adapters.sqlalchemy.mappings import (
    entry_table,
    subscription_table,
    unread_entry_table,
    updated_entry_table,
)
from entrysync.domain.errors import ReceiverError, RecordNotUniqueError, RecordValidationError
from entrysync.domain.model import Entry, Feed

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable

    from sqlalchemy import Table
    from sqlalchemy.engine import CursorResult
    from sqlalchemy.orm import Session

    from entrysync.domain.model import UpdatedEntry

IN_CLAUSE_CHUNK: Final[int] = 500
UNIQUE_VIOLATION_SQLSTATE: Final[str] = "23505"
SQLITE_UNIQUE_ERRORS: Final[frozenset[str]] = frozenset(
    {"SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
)


def translate_integrity_error(exc: IntegrityError) -> ReceiverError:
    """Classify a driver integrity error by its error code."""

    orig = exc.orig
    sqlite_name = getattr(orig, "sqlite_errorname", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlite_name in SQLITE_UNIQUE_ERRORS or sqlstate == UNIQUE_VIOLATION_SQLSTATE:
        return RecordNotUniqueError(str(orig))
    return RecordValidationError(str(orig))


def _chunks[T](values: list[T], size: int = IN_CLAUSE_CHUNK) -> Iterable[list[T]]:
    for start in range(0, len(values), size):
        yield values[start : start + size]


class SqlAlchemyFeedRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, feed_id: int) -> Feed | None:
        return self.session.get(Feed, feed_id)

    def add(self, feed: Feed) -> None:
        self.session.add(feed)
        self.session.flush()


class SqlAlchemyEntryRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_public_ids(self, public_ids: Collection[str]) -> dict[str, Entry]:
        found: dict[str, Entry] = {}
        for chunk in _chunks(sorted(set(public_ids))):
            stmt = select(Entry).where(entry_table.c.public_id.in_(chunk))
            for entry in self.session.scalars(stmt):
                found[entry.public_id] = entry
        return found

    def find_thread_parent(self, *, feed_id: int, reply_to: str) -> Entry | None:
        by_tip = (
            select(Entry)
            .where(entry_table.c.feed_id == feed_id)
            .where(entry_table.c.thread_tip == reply_to)
            .order_by(entry_table.c.id)
            .limit(1)
        )
        parent = self.session.scalars(by_tip).first()
        if parent is not None:
            return parent
        by_upstream_id = (
            select(Entry)
            .where(entry_table.c.feed_id == feed_id)
            .where(entry_table.c.entry_id == reply_to)
            .order_by(entry_table.c.id)
            .limit(1)
        )
        return self.session.scalars(by_upstream_id).first()

    def add(self, entry: Entry) -> None:
        self.session.add(entry)
        self._flush()

    def save(self, entry: Entry) -> None:
        self.session.add(entry)
        self._flush()

    def _flush(self) -> None:
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise translate_integrity_error(exc) from exc


class SqlAlchemySubscriptionRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def update_audience(self, feed_id: int) -> list[int]:
        stmt = (
            select(subscription_table.c.user_id)
            .where(subscription_table.c.feed_id == feed_id)
            .where(subscription_table.c.active.is_(True))
            .where(subscription_table.c.muted.is_(False))
            .where(subscription_table.c.show_updates.is_(True))
            .order_by(subscription_table.c.user_id)
        )
        return list(self.session.scalars(stmt))


class _MarkerUserIds:
    """Shared lookup for (user, entry) marker tables."""

    def __init__(self, session: Session, table: Table) -> None:
        self.session = session
        self._table = table

    def user_ids(self, *, entry_id: int, user_ids: Collection[int]) -> set[int]:
        table = self._table
        found: set[int] = set()
        for chunk in _chunks(sorted(set(user_ids))):
            stmt = (
                select(table.c.user_id)
                .where(table.c.entry_id == entry_id)
                .where(table.c.user_id.in_(chunk))
            )
            found.update(self.session.scalars(stmt))
        return found


class SqlAlchemyUnreadEntryRepository(_MarkerUserIds):
    def __init__(self, session: Session) -> None:
        super().__init__(session, unread_entry_table)


class SqlAlchemyUpdatedEntryRepository(_MarkerUserIds):
    def __init__(self, session: Session) -> None:
        super().__init__(session, updated_entry_table)

    def add_ignoring_duplicates(self, markers: Iterable[UpdatedEntry]) -> int:
        rows = [
            {
                "user_id": marker.user_id,
                "entry_id": marker.entry_id,
                "feed_id": marker.feed_id,
                "published": marker.published,
                "updated": marker.updated,
            }
            for marker in markers
        ]
        if not rows:
            return 0

        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            stmt = sqlite.insert(updated_entry_table).values(rows)
        elif dialect == "postgresql":
            stmt = postgresql.insert(updated_entry_table).values(rows)
        else:
            return self._insert_one_by_one(rows)

        stmt = stmt.on_conflict_do_nothing(index_elements=["user_id", "entry_id"])
        result = cast("CursorResult[object]", self.session.execute(stmt))
        return max(result.rowcount, 0)

    def _insert_one_by_one(self, rows: list[dict[str, object]]) -> int:
        written = 0
        for row in rows:
            try:
                with self.session.begin_nested():
                    self.session.execute(updated_entry_table.insert().values(row))
            except IntegrityError as exc:
                error = translate_integrity_error(exc)
                if not isinstance(error, RecordNotUniqueError):
                    raise error from exc
                continue
            written += 1
        return written


if TYPE_CHECKING:
    from entrysync.domain.ports.persistence import (
        EntryRepository,
        FeedRepository,
        SubscriptionRepository,
        UnreadEntryRepository,
        UpdatedEntryRepository,
    )

    _session_stub = cast("Session", object())
    _feed_repo: FeedRepository = SqlAlchemyFeedRepository(_session_stub)
    _entry_repo: EntryRepository = SqlAlchemyEntryRepository(_session_stub)
    _subscription_repo: SubscriptionRepository = SqlAlchemySubscriptionRepository(_session_stub)
    _unread_repo: UnreadEntryRepository = SqlAlchemyUnreadEntryRepository(_session_stub)
    _updated_repo: UpdatedEntryRepository = SqlAlchemyUpdatedEntryRepository(_session_stub)
