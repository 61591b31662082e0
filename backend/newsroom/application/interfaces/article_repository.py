"""Abstract repository interfaces (ports) — define the contract, not the implementation."""

from abc import ABC, abstractmethod
from datetime import datetime

from newsroom.domain.entities import Article, ArticleStatus


class ArticleRepository(ABC):
    """Port for article persistence — implemented in the infrastructure layer."""

    @abstractmethod
    async def get_by_id(self, article_id: int) -> Article | None:
        """Retrieve a single article by its ID."""
        ...

    @abstractmethod
    async def get_for_update(self, article_id: int) -> Article | None:
        """Retrieve an article and lock its row until the enclosing transaction ends."""
        ...

    @abstractmethod
    async def get_page(
        self,
        status: ArticleStatus | None = None,
        author_id: int | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Article]:
        """Retrieve a page of articles, newest first, optionally filtered."""
        ...

    @abstractmethod
    async def count(self, status: ArticleStatus | None = None, author_id: int | None = None) -> int:
        """Count the articles matching the same filters as ``get_page``."""
        ...

    @abstractmethod
    async def create(self, article: Article) -> Article:
        """Persist a new article and return it with the generated ID."""
        ...

    @abstractmethod
    async def update(self, article: Article) -> Article:
        """Write every mutable field of an existing article."""
        ...

    @abstractmethod
    async def delete(self, article_id: int) -> bool:
        """Delete an article and its versions. Returns True if deleted, False if not found."""
        ...

    @abstractmethod
    async def increment_view_count(self, article_id: int) -> int:
        """Atomically add one to the view counter and return the new value."""
        ...

    @abstractmethod
    async def get_due_scheduled(self, now: datetime, limit: int = 100) -> list[Article]:
        """Scheduled articles whose publish time is at or before ``now``."""
        ...

    @abstractmethod
    async def promote_if_scheduled(self, article_id: int, now: datetime) -> bool:
        """Conditionally set status to published where it is still scheduled and due.

        Returns False when a concurrent edit already moved the article away from
        ``scheduled`` (or it was deleted), in which case nothing is written.
        """
        ...

    @abstractmethod
    async def latest_published(self, limit: int) -> list[Article]:
        """Most recently published articles, by publish time descending."""
        ...
