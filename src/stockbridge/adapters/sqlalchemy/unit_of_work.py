"""SQLAlchemy sessions for the reconciliation pipeline.

:func:`startup` binds one engine per process, migrates it to the latest schema
and prepares the session factory. Each :class:`SqlAlchemySyncUnitOfWork` then
opens one short-lived session whose repositories only see a single store.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar, Literal

from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stockbridge.adapters.sqlalchemy.mappings import start_mappers
from stockbridge.adapters.sqlalchemy.migrations import upgrade_head
from stockbridge.adapters.sqlalchemy.repositories import (
    SqlAlchemyProductRepository,
    SqlAlchemySyncRunRepository,
)
from stockbridge.config import get_database_config
from stockbridge.domain.errors import PersistenceError
from stockbridge.domain.model import DEFAULT_STORE_ID
from stockbridge.domain.ports.unit_of_work import SyncRepositories

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine

log = getLogger(__name__)


class StartupError(RuntimeError):
    """Raised when the adapter or a unit of work is used in the wrong lifecycle state."""


@dataclass(slots=True, frozen=True)
class _Database:
    engine: Engine
    sessions: sessionmaker[Session]


class _Registry:
    current: ClassVar[_Database | None] = None


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> None:
    """Create (or adopt) the engine, migrate it and prepare the session factory."""

    if _Registry.current is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    if engine is None:
        config = get_database_config()
        engine = create_engine(database_uri or config.uri, echo=config.echo, future=True)
    start_mappers()
    upgrade_head(engine=engine)
    # autoflush off: constraint violations surface at commit, as PersistenceError
    sessions = sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)
    _Registry.current = _Database(engine=engine, sessions=sessions)
    log.debug("Canonical store ready at %s", engine.url.render_as_string(hide_password=True))


def configured_engine() -> Engine | None:
    return _Registry.current.engine if _Registry.current is not None else None


def is_started() -> bool:
    return _Registry.current is not None


def shutdown() -> None:
    """Dispose the managed engine and forget it (mainly for tests)."""

    if _Registry.current is not None:
        _Registry.current.engine.dispose()
    _Registry.current = None


def _sessions() -> sessionmaker[Session]:
    if _Registry.current is None:
        raise StartupError(
            "SQLAlchemy adapter not initialised. Call stockbridge.adapters.sqlalchemy."
            "unit_of_work.startup() before requesting a unit of work."
        )
    return _Registry.current.sessions


class SqlAlchemySyncUnitOfWork:
    """Session over the canonical products and run log of one store."""

    def __init__(self, *, store_id: int = DEFAULT_STORE_ID) -> None:
        self._sessions = _sessions()
        self._store_id = store_id
        self._session: Session | None = None
        self._repositories: SyncRepositories | None = None

    @property
    def store_id(self) -> int:
        return self._store_id

    def __enter__(self) -> SqlAlchemySyncUnitOfWork:
        if self._session is not None:
            raise StartupError("Unit of work session already open")
        session = self._sessions()
        self._session = session
        self._repositories = SyncRepositories(
            products=SqlAlchemyProductRepository(session, store_id=self._store_id),
            runs=SqlAlchemySyncRunRepository(session, store_id=self._store_id),
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

    def commit(self) -> None:
        try:
            self.session.commit()
        except DBAPIError as exc:
            raise PersistenceError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> SyncRepositories:
        if self._repositories is None:
            raise StartupError("Unit of work session not open")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not open")
        return self._session


if TYPE_CHECKING:
    from stockbridge.domain.ports.unit_of_work import SyncUnitOfWork

    _uow_check: SyncUnitOfWork = SqlAlchemySyncUnitOfWork()
