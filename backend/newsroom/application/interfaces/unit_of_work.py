"""Port for the transactional scope shared by the article and version repositories."""

from abc import ABC, abstractmethod
from collections.abc import Callable
from types import TracebackType

from .article_repository import ArticleRepository
from .version_repository import ArticleVersionRepository


class UnitOfWork(ABC):
    """One database transaction.

    Usage:
        async with uow_factory() as uow:
            article = await uow.articles.get_for_update(article_id)
            ...
            await uow.commit()

    Leaving the block without ``commit()`` rolls the transaction back.
    """

    articles: ArticleRepository
    versions: ArticleVersionRepository

    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.rollback()


UnitOfWorkFactory = Callable[[], UnitOfWork]
