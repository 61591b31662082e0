"""SQLAlchemy implementation of the append-only article version ledger."""

import json
from datetime import datetime, timezone

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.application.interfaces import ArticleVersionRepository
from newsroom.domain.entities import ArticleSnapshot, ArticleVersion
from newsroom.domain.exceptions import ConcurrencyConflictError
from newsroom.infrastructure.database.models import ArticleVersionModel


class SQLAlchemyArticleVersionRepository(ArticleVersionRepository):
    """Concrete version repository; numbering happens inside the INSERT itself."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def append(self, article_id: int, snapshot: ArticleSnapshot) -> ArticleVersion:
        # INSERT ... VALUES ((SELECT COALESCE(MAX(version), 0) + 1 ...), ...): the
        # number is read and written in one statement, and the unique constraint
        # on (article_id, version) rejects a concurrent duplicate.
        next_version = (
            select(func.coalesce(func.max(ArticleVersionModel.version), 0) + 1)
            .where(ArticleVersionModel.article_id == article_id)
            .scalar_subquery()
        )
        stmt = insert(ArticleVersionModel).values(
            article_id=article_id,
            version=next_version,
            title=snapshot.title,
            content=snapshot.content,
            tags=json.dumps(list(snapshot.tags)),
            document_url=snapshot.document_url,
            document_handle=snapshot.document_handle,
            created_at=datetime.now(timezone.utc),
        )
        try:
            result = await self._session.execute(stmt)
        except IntegrityError as exc:
            raise ConcurrencyConflictError(
                f"Version number for article {article_id} was taken concurrently"
            ) from exc

        version_id = result.inserted_primary_key[0]
        model = await self._session.get(ArticleVersionModel, version_id)
        return self._to_domain(model)

    async def get_by_id(self, version_id: int) -> ArticleVersion | None:
        model = await self._session.get(ArticleVersionModel, version_id)
        return self._to_domain(model) if model else None

    async def list_for_article(self, article_id: int) -> list[ArticleVersion]:
        result = await self._session.execute(
            select(ArticleVersionModel)
            .where(ArticleVersionModel.article_id == article_id)
            .order_by(ArticleVersionModel.version.asc())
        )
        return [self._to_domain(m) for m in result.scalars().all()]

    # ── Mapping ──────────────────────────────────────────────────────

    @staticmethod
    def _to_domain(model: ArticleVersionModel) -> ArticleVersion:
        created_at = model.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return ArticleVersion(
            id=model.id,
            article_id=model.article_id,
            version=model.version,
            title=model.title,
            content=model.content,
            tags=tuple(json.loads(model.tags or "[]")),
            document_url=model.document_url,
            document_handle=model.document_handle,
            created_at=created_at,
        )
