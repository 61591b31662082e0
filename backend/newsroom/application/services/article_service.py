"""Application service (use case) for the article lifecycle.

Every command takes the acting ``Principal`` and runs inside one unit of work.
Content mutations (update, rollback) snapshot the pre-mutation article into the
version ledger in the same transaction that applies the change, with the
article row locked so concurrent edits of one article are serialized while
different articles proceed in parallel.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from newsroom.application.interfaces import BlobStore, StoredBlob, UnitOfWork, UnitOfWorkFactory
from newsroom.application.schemas import ArticleCreate, ArticleUpdate, DocumentUpload
from newsroom.domain.access_policy import Transition, authorize, is_allowed
from newsroom.domain.entities import Article, ArticleStatus, ArticleVersion, Principal
from newsroom.domain.exceptions import (
    ConcurrencyConflictError,
    DependencyFailureError,
    EntityNotFoundError,
    StorageError,
    ValidationError,
)
from newsroom.domain.tags import parse_tags

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
Mutation = Callable[[UnitOfWork, Article, datetime], Awaitable[None]]

# One retry when two writers race for the same version number.
VERSION_WRITE_ATTEMPTS = 2
MAX_PAGE_SIZE = 100


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ArticleLifecycleService:
    """Orchestrates article transitions. Depends on ports only (DI)."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        blob_store: BlobStore | None = None,
        clock: Clock = utc_now,
        allowed_document_types: tuple[str, ...] = ("application/pdf",),
        max_document_bytes: int = 50 * 1024 * 1024,
    ) -> None:
        self._uow_factory = uow_factory
        self._blob_store = blob_store
        self._clock = clock
        self._allowed_document_types = allowed_document_types
        self._max_document_bytes = max_document_bytes

    # ── Queries ──────────────────────────────────────────────────────

    async def read_article(self, article_id: int, principal: Principal | None = None) -> Article:
        """Fetch an article for display.

        Published articles are public and every read bumps the view counter.
        Other statuses are only visible to the author and staff, with no
        counting; everyone else gets ``EntityNotFoundError`` so unpublished
        work is not revealed.
        """
        async with self._uow_factory() as uow:
            article = await uow.articles.get_by_id(article_id)
            if article is None or not is_allowed(Transition.VIEW, principal, article):
                raise EntityNotFoundError("Article", article_id)
            if article.is_published:
                article.view_count = await uow.articles.increment_view_count(article_id)
                await uow.commit()
            return article

    async def list_articles(
        self,
        principal: Principal | None = None,
        status: ArticleStatus | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[Article], int]:
        """Return a page of articles and the total count for the same filter.

        Without a status filter, or for anonymous callers, only published
        articles are listed. Staff may list any status; reporters asking for an
        unpublished status only see their own articles.
        """
        if skip < 0:
            raise ValidationError("skip", "must be >= 0")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError("limit", f"must be between 1 and {MAX_PAGE_SIZE}")

        author_id: int | None = None
        if principal is None or status is None:
            status = ArticleStatus.PUBLISHED
        elif status != ArticleStatus.PUBLISHED and not principal.role.is_staff:
            author_id = principal.id

        async with self._uow_factory() as uow:
            articles = await uow.articles.get_page(status=status, author_id=author_id, skip=skip, limit=limit)
            total = await uow.articles.count(status=status, author_id=author_id)
        return articles, total

    async def list_versions(self, article_id: int, principal: Principal) -> list[ArticleVersion]:
        async with self._uow_factory() as uow:
            article = await uow.articles.get_by_id(article_id)
            if article is None:
                raise EntityNotFoundError("Article", article_id)
            authorize(Transition.LIST_VERSIONS, principal, article)
            return await uow.versions.list_for_article(article_id)

    # ── Commands ─────────────────────────────────────────────────────

    async def create_article(
        self,
        principal: Principal,
        data: ArticleCreate,
        document: DocumentUpload | None = None,
    ) -> Article:
        """Create a draft authored by ``principal``, uploading the attachment first if given."""
        authorize(Transition.CREATE, principal)
        title = self._clean_title(data.title)

        stored: StoredBlob | None = None
        if document is not None:
            stored = await self._store_document(document)

        now = self._clock()
        article = Article(
            title=title,
            content=data.content,
            author_id=principal.id,
            tags=parse_tags(data.tags) or [],
            document_url=stored.url if stored else None,
            document_handle=stored.handle if stored else None,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._uow_factory() as uow:
                article = await uow.articles.create(article)
                await uow.commit()
        except StorageError:
            if stored is not None:
                await self._discard_blob(stored.handle)
            raise

        logger.info("Article %s created by %s (%s)", article.id, principal.id, principal.role.value)
        return article

    async def update_article(self, article_id: int, principal: Principal, data: ArticleUpdate) -> Article:
        """Partial edit; snapshots the current content as the next version first."""
        title = self._clean_title(data.title) if data.title is not None else None
        tags = parse_tags(data.tags)

        async def mutate(uow: UnitOfWork, article: Article, now: datetime) -> None:
            await self._snapshot(uow, article)
            article.apply_update(now, title=title, content=data.content, tags=tags)

        return await self._transition(article_id, principal, Transition.UPDATE, mutate, versioned=True)

    async def submit_article(self, article_id: int, principal: Principal) -> Article:
        async def mutate(uow: UnitOfWork, article: Article, now: datetime) -> None:
            article.submit(now)

        return await self._transition(article_id, principal, Transition.SUBMIT, mutate)

    async def approve_article(
        self,
        article_id: int,
        principal: Principal,
        publish_at: datetime | None = None,
    ) -> Article:
        if publish_at is not None:
            if publish_at.tzinfo is None:
                publish_at = publish_at.replace(tzinfo=timezone.utc)
            else:
                publish_at = publish_at.astimezone(timezone.utc)

        async def mutate(uow: UnitOfWork, article: Article, now: datetime) -> None:
            article.approve(now, publish_at=publish_at)

        return await self._transition(article_id, principal, Transition.APPROVE, mutate)

    async def reject_article(self, article_id: int, principal: Principal) -> Article:
        async def mutate(uow: UnitOfWork, article: Article, now: datetime) -> None:
            article.reject(now)

        return await self._transition(article_id, principal, Transition.REJECT, mutate)

    async def rollback_article(self, article_id: int, version_id: int, principal: Principal) -> Article:
        """Restore the content of ``version_id`` after snapshotting the current state."""

        async def mutate(uow: UnitOfWork, article: Article, now: datetime) -> None:
            target = await uow.versions.get_by_id(version_id)
            if target is None or target.article_id != article_id:
                raise EntityNotFoundError("ArticleVersion", version_id)
            await self._snapshot(uow, article)
            article.restore(target, now)

        return await self._transition(article_id, principal, Transition.ROLLBACK, mutate, versioned=True)

    async def delete_article(self, article_id: int, principal: Principal) -> None:
        """Remove an article with its versions, then release any attached documents."""
        async with self._uow_factory() as uow:
            article = await uow.articles.get_for_update(article_id)
            if article is None:
                raise EntityNotFoundError("Article", article_id)
            authorize(Transition.DELETE, principal, article)
            versions = await uow.versions.list_for_article(article_id)
            await uow.articles.delete(article_id)
            await uow.commit()

        handles = {article.document_handle} | {v.document_handle for v in versions}
        for handle in sorted(h for h in handles if h):
            await self._discard_blob(handle)
        logger.info("Article %s deleted by %s", article_id, principal.id)

    # ── Helpers ──────────────────────────────────────────────────────

    async def _transition(
        self,
        article_id: int,
        principal: Principal,
        transition: Transition,
        mutate: Mutation,
        versioned: bool = False,
    ) -> Article:
        """Lock the article, check the policy, apply ``mutate`` and commit.

        Versioned transitions are retried once when the version number was
        taken by a concurrent writer; a second conflict becomes ``StorageError``.
        """
        attempts = VERSION_WRITE_ATTEMPTS if versioned else 1
        attempt = 1
        while True:
            try:
                return await self._apply(article_id, principal, transition, mutate)
            except ConcurrencyConflictError as exc:
                if attempt >= attempts:
                    raise StorageError(
                        f"Could not record a version for article {article_id}: {exc}"
                    ) from exc
                logger.warning("Version conflict on article %s, retrying %s", article_id, transition.value)
                attempt += 1

    async def _apply(
        self,
        article_id: int,
        principal: Principal,
        transition: Transition,
        mutate: Mutation,
    ) -> Article:
        async with self._uow_factory() as uow:
            article = await uow.articles.get_for_update(article_id)
            if article is None:
                raise EntityNotFoundError("Article", article_id)
            authorize(transition, principal, article)
            previous = article.status
            await mutate(uow, article, self._clock())
            article = await uow.articles.update(article)
            await uow.commit()

        logger.info(
            "Article %s: %s by %s (%s -> %s)",
            article_id,
            transition.value,
            principal.id,
            previous.value,
            article.status.value,
        )
        return article

    @staticmethod
    async def _snapshot(uow: UnitOfWork, article: Article) -> ArticleVersion:
        version = await uow.versions.append(article.id, article.snapshot())
        logger.debug("Article %s: stored version %d", article.id, version.version)
        return version

    @staticmethod
    def _clean_title(title: str) -> str:
        cleaned = title.strip()
        if not cleaned:
            raise ValidationError("title", "must not be blank")
        return cleaned

    async def _store_document(self, document: DocumentUpload) -> StoredBlob:
        if document.content_type not in self._allowed_document_types:
            raise ValidationError(
                "document",
                f"content type '{document.content_type}' is not allowed",
            )
        if not document.content:
            raise ValidationError("document", "file is empty")
        if len(document.content) > self._max_document_bytes:
            raise ValidationError("document", "file exceeds the upload size limit")
        if self._blob_store is None:
            raise DependencyFailureError("blob_store", "no blob store configured")
        return await self._blob_store.put(document.content, document.content_type, document.filename)

    async def _discard_blob(self, handle: str) -> None:
        """Best-effort blob removal — the article operation has already succeeded."""
        if self._blob_store is None:
            return
        try:
            await self._blob_store.delete(handle)
        except EntityNotFoundError:
            logger.info("Blob %s already gone", handle)
        except DependencyFailureError as exc:
            logger.warning("Could not delete blob %s: %s", handle, exc)
