"""SQLAlchemy mapping metadata for the entrysync domain model."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from functools import cache
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    ForeignKey,
    Index,
    Integer,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
    orm,
)

from entrysync.domain.model import Entry, Feed, Subscription, UnreadEntry, UpdatedEntry

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


mapper_registry = orm.registry()
mapper_registry.metadata.naming_convention = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_label)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

feed_table = Table(
    "feed",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String, nullable=True),
    Column("feed_url", String, nullable=True),
    Column("site_url", String, nullable=True),
    Column("self_url", String, nullable=True),
    Column("options", JSON, nullable=False, default=dict),
    Column("updated_at", UTCDateTime(), nullable=True),
)

entry_table = Table(
    "entry",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("feed_id", Integer, ForeignKey("feed.id"), nullable=False),
    Column("public_id", String(255), nullable=False),
    Column("title", Text, nullable=True),
    Column("url", Text, nullable=True),
    Column("author", Text, nullable=True),
    Column("content", Text, nullable=True),
    Column("summary", Text, nullable=True),
    Column("entry_id", String, nullable=True),
    Column("published", UTCDateTime(), nullable=True),
    Column("data", JSON, nullable=False, default=dict),
    Column("thread_tip", String, nullable=True),
    Column("original", JSON, key="_original", nullable=True),
    Column("created_at", UTCDateTime(), nullable=True),
    Column("updated_at", UTCDateTime(), nullable=True),
    UniqueConstraint("public_id"),
    Index("ix_entry_feed_thread_tip", "feed_id", "thread_tip"),
    Index("ix_entry_feed_entry_id", "feed_id", "entry_id"),
)

subscription_table = Table(
    "subscription",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False),
    Column("feed_id", Integer, ForeignKey("feed.id"), nullable=False),
    Column("active", Boolean, nullable=False, default=True),
    Column("muted", Boolean, nullable=False, default=False),
    Column("show_updates", Boolean, nullable=False, default=True),
    UniqueConstraint("user_id", "feed_id"),
    Index("ix_subscription_feed_id", "feed_id"),
)

unread_entry_table = Table(
    "unread_entry",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False),
    Column("feed_id", Integer, nullable=False),
    Column("entry_id", Integer, ForeignKey("entry.id"), nullable=False),
    Column("published", UTCDateTime(), nullable=True),
    Column("entry_created_at", UTCDateTime(), nullable=True),
    UniqueConstraint("user_id", "entry_id"),
    Index("ix_unread_entry_entry_id", "entry_id"),
)

updated_entry_table = Table(
    "updated_entry",
    mapper_registry.metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False),
    Column("feed_id", Integer, nullable=False),
    Column("entry_id", Integer, ForeignKey("entry.id"), nullable=False),
    Column("published", UTCDateTime(), nullable=True),
    Column("updated", UTCDateTime(), nullable=True),
    UniqueConstraint("user_id", "entry_id"),
    Index("ix_updated_entry_entry_id", "entry_id"),
)


@cache
def start_mappers() -> orm.registry:
    """Configure SQLAlchemy mappers for the domain model."""

    log.info("Starting SQLAlchemy mappers")

    mapper_registry.map_imperatively(Feed, feed_table)
    mapper_registry.map_imperatively(Entry, entry_table)
    mapper_registry.map_imperatively(Subscription, subscription_table)
    mapper_registry.map_imperatively(UnreadEntry, unread_entry_table)
    mapper_registry.map_imperatively(UpdatedEntry, updated_entry_table)

    orm.configure_mappers()
    return mapper_registry


def create_all_tables(engine: Engine) -> None:
    mapper_registry.metadata.create_all(engine)
