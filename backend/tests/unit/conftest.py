"""In-memory fakes of the application ports, shared by the unit tests."""

import asyncio
import copy
from collections import defaultdict
from datetime import datetime, timezone

import pytest

from newsroom.application.interfaces import (
    ArticleRepository,
    ArticleVersionRepository,
    BlobStore,
    Notifier,
    StoredBlob,
    SubscriberDirectory,
    UnitOfWork,
)
from newsroom.domain.entities import (
    Article,
    ArticleSnapshot,
    ArticleStatus,
    ArticleVersion,
    Principal,
    Role,
)
from newsroom.domain.exceptions import (
    ConcurrencyConflictError,
    DependencyFailureError,
    EntityNotFoundError,
)


class InMemoryStore:
    """Committed state shared by every FakeUnitOfWork created from it."""

    def __init__(self):
        self.articles: dict[int, Article] = {}
        self.versions: dict[int, ArticleVersion] = {}
        self.locks: dict[int, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.next_article_id = 1
        self.next_version_id = 1
        self.version_conflicts = 0
        self.commits = 0

    def uow(self) -> "FakeUnitOfWork":
        return FakeUnitOfWork(self)

    def versions_of(self, article_id: int) -> list[ArticleVersion]:
        return sorted(
            (v for v in self.versions.values() if v.article_id == article_id),
            key=lambda v: v.version,
        )


class FakeArticleRepository(ArticleRepository):
    """In-memory fake repository; writes are staged until the unit of work commits."""

    def __init__(self, store: InMemoryStore, uow: "FakeUnitOfWork"):
        self._store = store
        self._uow = uow

    def _current(self, article_id: int) -> Article | None:
        if article_id in self._uow.deleted:
            return None
        article = self._uow.pending.get(article_id) or self._store.articles.get(article_id)
        return copy.deepcopy(article) if article else None

    async def get_by_id(self, article_id: int) -> Article | None:
        return self._current(article_id)

    async def get_for_update(self, article_id: int) -> Article | None:
        lock = self._store.locks[article_id]
        await lock.acquire()
        self._uow.held.append(lock)
        return self._current(article_id)

    def _filtered(self, status, author_id) -> list[Article]:
        return [
            a
            for a in self._store.articles.values()
            if (status is None or a.status == status) and (author_id is None or a.author_id == author_id)
        ]

    async def get_page(self, status=None, author_id=None, skip=0, limit=100) -> list[Article]:
        def sort_key(a: Article) -> datetime:
            return a.published_at if status == ArticleStatus.PUBLISHED else a.created_at

        articles = sorted(self._filtered(status, author_id), key=sort_key, reverse=True)
        return [copy.deepcopy(a) for a in articles[skip : skip + limit]]

    async def count(self, status=None, author_id=None) -> int:
        return len(self._filtered(status, author_id))

    async def create(self, article: Article) -> Article:
        article.id = self._store.next_article_id
        self._store.next_article_id += 1
        self._uow.pending[article.id] = copy.deepcopy(article)
        return article

    async def update(self, article: Article) -> Article:
        if self._current(article.id) is None:
            raise ValueError(f"Article {article.id} not found")
        self._uow.pending[article.id] = copy.deepcopy(article)
        return article

    async def delete(self, article_id: int) -> bool:
        if self._current(article_id) is None:
            return False
        self._uow.deleted.add(article_id)
        return True

    async def increment_view_count(self, article_id: int) -> int:
        article = self._current(article_id)
        article.view_count += 1
        self._uow.pending[article_id] = article
        return article.view_count

    async def get_due_scheduled(self, now: datetime, limit: int = 100) -> list[Article]:
        due = [
            a
            for a in self._store.articles.values()
            if a.status == ArticleStatus.SCHEDULED and a.published_at <= now
        ]
        return [copy.deepcopy(a) for a in sorted(due, key=lambda a: a.published_at)[:limit]]

    async def promote_if_scheduled(self, article_id: int, now: datetime) -> bool:
        article = self._current(article_id)
        if article is None or article.status != ArticleStatus.SCHEDULED or article.published_at > now:
            return False
        article.status = ArticleStatus.PUBLISHED
        article.updated_at = now
        self._uow.pending[article_id] = article
        return True

    async def latest_published(self, limit: int) -> list[Article]:
        return await self.get_page(status=ArticleStatus.PUBLISHED, limit=limit)


class FakeVersionRepository(ArticleVersionRepository):

    def __init__(self, store: InMemoryStore, uow: "FakeUnitOfWork"):
        self._store = store
        self._uow = uow

    def _visible(self, article_id: int) -> list[ArticleVersion]:
        staged = [v for v in self._uow.pending_versions if v.article_id == article_id]
        return self._store.versions_of(article_id) + staged

    async def append(self, article_id: int, snapshot: ArticleSnapshot) -> ArticleVersion:
        if self._store.version_conflicts > 0:
            self._store.version_conflicts -= 1
            raise ConcurrencyConflictError(f"duplicate version for article {article_id}")
        number = max((v.version for v in self._visible(article_id)), default=0) + 1
        version = ArticleVersion(
            id=self._store.next_version_id,
            article_id=article_id,
            version=number,
            title=snapshot.title,
            content=snapshot.content,
            document_url=snapshot.document_url,
            document_handle=snapshot.document_handle,
            tags=snapshot.tags,
        )
        self._store.next_version_id += 1
        self._uow.pending_versions.append(version)
        return version

    async def get_by_id(self, version_id: int) -> ArticleVersion | None:
        for version in self._uow.pending_versions:
            if version.id == version_id:
                return version
        return self._store.versions.get(version_id)

    async def list_for_article(self, article_id: int) -> list[ArticleVersion]:
        return self._visible(article_id)


class FakeUnitOfWork(UnitOfWork):

    def __init__(self, store: InMemoryStore):
        self._store = store
        self.pending: dict[int, Article] = {}
        self.pending_versions: list[ArticleVersion] = []
        self.deleted: set[int] = set()
        self.held: list[asyncio.Lock] = []
        self.articles = FakeArticleRepository(store, self)
        self.versions = FakeVersionRepository(store, self)

    async def commit(self) -> None:
        self._store.articles.update(self.pending)
        for version in self.pending_versions:
            self._store.versions[version.id] = version
        for article_id in self.deleted:
            self._store.articles.pop(article_id, None)
            for version in self._store.versions_of(article_id):
                del self._store.versions[version.id]
        self._store.commits += 1
        await self.rollback()

    async def rollback(self) -> None:
        self.pending = {}
        self.pending_versions = []
        self.deleted = set()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.rollback()
        while self.held:
            self.held.pop().release()


class InMemoryBlobStore(BlobStore):

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.fail = False
        self._counter = 0

    async def put(self, content: bytes, content_type: str, filename: str = "") -> StoredBlob:
        if self.fail:
            raise DependencyFailureError("blob_store", "store offline")
        self._counter += 1
        handle = f"documents/{self._counter}-{filename or 'document'}"
        self.blobs[handle] = content
        return StoredBlob(url=f"memory://{handle}", handle=handle, content_type=content_type, size=len(content))

    async def delete(self, handle: str) -> None:
        if handle not in self.blobs:
            raise EntityNotFoundError("Blob", handle)
        del self.blobs[handle]


class RecordingNotifier(Notifier):

    def __init__(self, failing: set[str] | None = None):
        self.sent: list[tuple[str, str, str]] = []
        self.failing = failing or set()
        self.errors: dict[str, Exception] = {}

    async def send(self, recipient: str, subject: str, body_html: str) -> None:
        if recipient in self.failing:
            raise DependencyFailureError("notifier", f"mailbox {recipient} unavailable")
        if recipient in self.errors:
            raise self.errors[recipient]
        self.sent.append((recipient, subject, body_html))


class StaticSubscriberDirectory(SubscriberDirectory):

    def __init__(self, emails: list[str]):
        self.emails = emails

    async def confirmed_emails(self) -> list[str]:
        return list(self.emails)


class FakeClock:
    """Callable clock that tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def reporter() -> Principal:
    return Principal(id=1, role=Role.REPORTER)


@pytest.fixture
def other_reporter() -> Principal:
    return Principal(id=2, role=Role.REPORTER)


@pytest.fixture
def editor() -> Principal:
    return Principal(id=10, role=Role.EDITOR)


@pytest.fixture
def admin() -> Principal:
    return Principal(id=99, role=Role.ADMIN)


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def subscribers() -> StaticSubscriberDirectory:
    return StaticSubscriberDirectory(["ada@example.com", "grace@example.com", "linus@example.com"])
