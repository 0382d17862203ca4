from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import inspect, select

from entrysync.adapters.sqlalchemy.mappings import UTCDateTime, entry_table, start_mappers
from entrysync.domain.model import Entry, Feed

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine
    from sqlalchemy.orm import Session


def test_start_mappers_is_idempotent() -> None:
    assert start_mappers() is start_mappers()


def test_schema_has_receiver_tables(sqlite_engine: Engine) -> None:
    tables = set(inspect(sqlite_engine).get_table_names())

    assert {"feed", "entry", "subscription", "unread_entry", "updated_entry"} <= tables


def test_entry_public_id_is_unique(sqlite_engine: Engine) -> None:
    constraints = inspect(sqlite_engine).get_unique_constraints("entry")

    assert ["public_id"] in [constraint["column_names"] for constraint in constraints]


def test_original_column_maps_to_private_attribute(sqlite_session: Session) -> None:
    feed = Feed(title="Example")
    sqlite_session.add(feed)
    sqlite_session.flush()
    assert feed.id is not None
    entry = Entry(feed_id=feed.id, public_id="a", content="x")
    entry._original = {"content": "before"}  # noqa: SLF001
    sqlite_session.add(entry)
    sqlite_session.commit()

    stored = sqlite_session.execute(select(entry_table.c["_original"])).scalar_one()

    assert stored == {"content": "before"}


def test_utc_datetime_normalizes_offsets() -> None:
    column_type = UTCDateTime()
    offset = timezone(timedelta(hours=2))

    bound = column_type.process_bind_param(datetime(2025, 1, 1, 12, tzinfo=offset), None)  # type: ignore[arg-type]
    naive = column_type.process_bind_param(datetime(2025, 1, 1, 12), None)  # type: ignore[arg-type]  # noqa: DTZ001
    loaded = column_type.process_result_value(datetime(2025, 1, 1, 10), None)  # type: ignore[arg-type]  # noqa: DTZ001

    assert bound == datetime(2025, 1, 1, 10, tzinfo=UTC)
    assert naive == datetime(2025, 1, 1, 12, tzinfo=UTC)
    assert loaded == datetime(2025, 1, 1, 10, tzinfo=UTC)
