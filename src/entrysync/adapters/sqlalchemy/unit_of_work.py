"""SQLAlchemy unit of work for reconciling feed batches.

The adapter is bound to an engine once per process with :func:`startup`. Each batch
then opens its own :class:`SqlAlchemyReceiverUnitOfWork`, whose session stays open
across the per-item commits the reconciler issues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from entrysync.adapters.sqlalchemy.mappings import create_all_tables, start_mappers
from entrysync.adapters.sqlalchemy.repositories import (
    SqlAlchemyEntryRepository,
    SqlAlchemyFeedRepository,
    SqlAlchemySubscriptionRepository,
    SqlAlchemyUnreadEntryRepository,
    SqlAlchemyUpdatedEntryRepository,
)
from entrysync.config.storage import get_database_config
from entrysync.domain.ports.unit_of_work import ReceiverRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = logging.getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the adapter is used before :func:`startup` or bound twice."""


@dataclass(slots=True)
class _AdapterState:
    engine: Engine | None = None
    sessions: sessionmaker[Session] | None = None

    def bind(self, engine: Engine | None) -> None:
        self.engine = engine
        # loaded entries must survive the per-item commits of a batch
        self.sessions = (
            None if engine is None else sessionmaker(bind=engine, expire_on_commit=False)
        )

    def session_factory(self) -> sessionmaker[Session]:
        if self.sessions is None:
            raise StartupError(
                "Entry store not initialised; call "
                "entrysync.adapters.sqlalchemy.unit_of_work.startup() first."
            )
        return self.sessions


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Bind the adapter to ``engine`` (or a new one for ``database_uri``) and create the schema."""

    if _STATE.engine is not None and not force:
        raise StartupError("Entry store already initialised; pass force=True to rebind.")

    bound = engine or create_engine(database_uri or get_database_config().uri)
    start_mappers()
    create_all_tables(bound)
    _STATE.bind(bound)
    log.info("Entry store ready at %s", bound.url.render_as_string(hide_password=True))
    return bound


def configured_engine() -> Engine | None:
    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the bound engine and forget it."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.bind(None)


class SqlAlchemyReceiverUnitOfWork:
    """One session per batch. Commits and rollbacks are driven by the reconciler."""

    def __init__(self, session_factory: sessionmaker[Session] | None = None) -> None:
        self._session_factory = session_factory or _STATE.session_factory()
        self._session: Session | None = None
        self._repositories: ReceiverRepositories | None = None

    def __enter__(self) -> SqlAlchemyReceiverUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work is already open")
        session = self._session_factory()
        self._session = session
        self._repositories = ReceiverRepositories(
            feeds=SqlAlchemyFeedRepository(session),
            entries=SqlAlchemyEntryRepository(session),
            subscriptions=SqlAlchemySubscriptionRepository(session),
            unread_entries=SqlAlchemyUnreadEntryRepository(session),
            updated_entries=SqlAlchemyUpdatedEntryRepository(session),
        )
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        session = self.session
        try:
            if exc_type is not None:
                session.rollback()
        finally:
            session.close()
            self._session = None
            self._repositories = None
        return False

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work is not open")
        return self._session

    @property
    def repositories(self) -> ReceiverRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work is not open")
        return self._repositories

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


if TYPE_CHECKING:
    from entrysync.domain.ports.unit_of_work import ReceiverUnitOfWork

    _uow_check: ReceiverUnitOfWork = SqlAlchemyReceiverUnitOfWork()
