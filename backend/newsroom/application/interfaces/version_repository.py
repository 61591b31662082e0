"""Port for the append-only article version ledger."""

from abc import ABC, abstractmethod

from newsroom.domain.entities import ArticleSnapshot, ArticleVersion


class ArticleVersionRepository(ABC):
    """Versions are only ever appended; deletion happens by cascade from the article."""

    @abstractmethod
    async def append(self, article_id: int, snapshot: ArticleSnapshot) -> ArticleVersion:
        """Store ``snapshot`` as version ``max(existing) + 1`` (1 for the first).

        The number is computed and written in one statement. Raises
        ``ConcurrencyConflictError`` if another writer took the same number.
        """
        ...

    @abstractmethod
    async def get_by_id(self, version_id: int) -> ArticleVersion | None:
        ...

    @abstractmethod
    async def list_for_article(self, article_id: int) -> list[ArticleVersion]:
        """All versions of an article ordered by version number."""
        ...
