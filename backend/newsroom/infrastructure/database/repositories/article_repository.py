"""Concrete repository implementation backed by SQLAlchemy."""

import json
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.application.interfaces import ArticleRepository
from newsroom.domain.entities import Article, ArticleStatus
from newsroom.infrastructure.database.models import ArticleModel, ArticleVersionModel


def _encode_tags(tags: list[str] | tuple[str, ...]) -> str:
    return json.dumps(list(tags))


def _decode_tags(raw: str | None) -> list[str]:
    return json.loads(raw) if raw else []


def _as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; everything stored here is UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLAlchemyArticleRepository(ArticleRepository):
    """Implements the ArticleRepository port using SQLAlchemy async sessions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_entity(self, model: ArticleModel) -> Article:
        """Map ORM model → domain entity."""
        return Article(
            id=model.id,
            title=model.title,
            content=model.content,
            tags=_decode_tags(model.tags),
            document_url=model.document_url,
            document_handle=model.document_handle,
            author_id=model.author_id,
            status=ArticleStatus(model.status),
            published_at=_as_utc(model.published_at),
            view_count=model.view_count,
            created_at=_as_utc(model.created_at),
            updated_at=_as_utc(model.updated_at),
        )

    def _to_model(self, entity: Article) -> ArticleModel:
        """Map domain entity → ORM model (for creation)."""
        return ArticleModel(
            title=entity.title,
            content=entity.content,
            tags=_encode_tags(entity.tags),
            document_url=entity.document_url,
            document_handle=entity.document_handle,
            author_id=entity.author_id,
            status=entity.status.value,
            published_at=_as_utc(entity.published_at),
            view_count=entity.view_count,
            created_at=_as_utc(entity.created_at),
            updated_at=_as_utc(entity.updated_at),
        )

    @staticmethod
    def _filtered(stmt, status: ArticleStatus | None, author_id: int | None):
        if status is not None:
            stmt = stmt.where(ArticleModel.status == status.value)
        if author_id is not None:
            stmt = stmt.where(ArticleModel.author_id == author_id)
        return stmt

    async def get_by_id(self, article_id: int) -> Article | None:
        result = await self._session.get(ArticleModel, article_id)
        return self._to_entity(result) if result else None

    async def get_for_update(self, article_id: int) -> Article | None:
        stmt = (
            select(ArticleModel)
            .where(ArticleModel.id == article_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_page(
        self,
        status: ArticleStatus | None = None,
        author_id: int | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[Article]:
        order = ArticleModel.published_at if status == ArticleStatus.PUBLISHED else ArticleModel.created_at
        stmt = self._filtered(select(ArticleModel), status, author_id)
        stmt = stmt.order_by(order.desc(), ArticleModel.id.desc()).offset(skip).limit(limit)
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def count(self, status: ArticleStatus | None = None, author_id: int | None = None) -> int:
        stmt = self._filtered(select(func.count(ArticleModel.id)), status, author_id)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def create(self, article: Article) -> Article:
        model = self._to_model(article)
        self._session.add(model)
        await self._session.flush()
        return self._to_entity(model)

    async def update(self, article: Article) -> Article:
        model = await self._session.get(ArticleModel, article.id)
        if model is None:
            raise ValueError(f"Article {article.id} not found in database")
        model.title = article.title
        model.content = article.content
        model.tags = _encode_tags(article.tags)
        model.document_url = article.document_url
        model.document_handle = article.document_handle
        model.status = article.status.value
        model.published_at = _as_utc(article.published_at)
        model.updated_at = _as_utc(article.updated_at)
        await self._session.flush()
        return self._to_entity(model)

    async def delete(self, article_id: int) -> bool:
        model = await self._session.get(ArticleModel, article_id)
        if model is None:
            return False
        await self._session.execute(
            delete(ArticleVersionModel).where(ArticleVersionModel.article_id == article_id)
        )
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def increment_view_count(self, article_id: int) -> int:
        await self._session.execute(
            update(ArticleModel)
            .where(ArticleModel.id == article_id)
            .values(view_count=ArticleModel.view_count + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self._session.execute(
            select(ArticleModel.view_count).where(ArticleModel.id == article_id)
        )
        return result.scalar_one()

    async def get_due_scheduled(self, now: datetime, limit: int = 100) -> list[Article]:
        stmt = (
            select(ArticleModel)
            .where(
                ArticleModel.status == ArticleStatus.SCHEDULED.value,
                ArticleModel.published_at <= _as_utc(now),
            )
            .order_by(ArticleModel.published_at.asc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]

    async def promote_if_scheduled(self, article_id: int, now: datetime) -> bool:
        result = await self._session.execute(
            update(ArticleModel)
            .where(
                ArticleModel.id == article_id,
                ArticleModel.status == ArticleStatus.SCHEDULED.value,
                ArticleModel.published_at <= _as_utc(now),
            )
            .values(status=ArticleStatus.PUBLISHED.value, updated_at=_as_utc(now))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def latest_published(self, limit: int) -> list[Article]:
        stmt = (
            select(ArticleModel)
            .where(ArticleModel.status == ArticleStatus.PUBLISHED.value)
            .order_by(ArticleModel.published_at.desc(), ArticleModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(row) for row in result.scalars().all()]
