"""SQLAlchemy implementation of the UnitOfWork port — one AsyncSession per transaction."""

import logging
from collections.abc import Callable
from types import TracebackType

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.application.interfaces import UnitOfWork, UnitOfWorkFactory
from newsroom.domain.exceptions import ConcurrencyConflictError, StorageError
from newsroom.infrastructure.database.repositories import (
    SQLAlchemyArticleRepository,
    SQLAlchemyArticleVersionRepository,
)

logger = logging.getLogger(__name__)


class SQLAlchemyUnitOfWork(UnitOfWork):
    """Binds the article and version repositories to a single session.

    Database errors escaping the block are re-raised as ``StorageError`` so the
    application layer never sees SQLAlchemy types.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self._session = self._session_factory()
        self.articles = SQLAlchemyArticleRepository(self._session)
        self.versions = SQLAlchemyArticleVersionRepository(self._session)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            await self.rollback()
        finally:
            await self._session.close()
            self._session = None
        if isinstance(exc, SQLAlchemyError):
            raise StorageError(str(exc)) from exc

    async def commit(self) -> None:
        try:
            await self._session.commit()
        except IntegrityError as exc:
            raise ConcurrencyConflictError(str(exc)) from exc
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def rollback(self) -> None:
        try:
            await self._session.rollback()
        except SQLAlchemyError:
            logger.exception("Rollback failed")


def sqlalchemy_uow_factory(session_factory: Callable[[], AsyncSession]) -> UnitOfWorkFactory:
    """Return a zero-argument factory suitable for the application services."""

    def factory() -> UnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory
