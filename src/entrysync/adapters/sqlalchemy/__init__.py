"""SQLAlchemy adapter package for entrysync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyEntryRepository,
    SqlAlchemyFeedRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUnreadEntryRepository,
    SqlAlchemyUpdatedEntryRepository,
    translate_integrity_error,
)
from .unit_of_work import SqlAlchemyReceiverUnitOfWork, StartupError, shutdown, startup

__all__ = [
    "SqlAlchemyEntryRepository",
    "SqlAlchemyFeedRepository",
    "SqlAlchemyReceiverUnitOfWork",
    "SqlAlchemySubscriptionRepository",
    "SqlAlchemyUnreadEntryRepository",
    "SqlAlchemyUpdatedEntryRepository",
    "StartupError",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
]
