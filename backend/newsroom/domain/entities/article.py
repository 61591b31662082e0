"""Domain entities — pure Python business objects, no framework dependencies."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from newsroom.domain.exceptions import InvalidStateTransitionError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ArticleStatus(str, Enum):
    """Lifecycle states of a news article. None of them is terminal."""

    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    PUBLISHED = "published"
    SCHEDULED = "scheduled"
    REJECTED = "rejected"

    @property
    def has_publish_time(self) -> bool:
        """Scheduled and published articles carry a publish timestamp; the rest never do."""
        return self in (ArticleStatus.SCHEDULED, ArticleStatus.PUBLISHED)


@dataclass(frozen=True)
class ArticleSnapshot:
    """The content fields captured into a version before a mutation."""

    title: str
    content: str
    document_url: str | None
    document_handle: str | None
    tags: tuple[str, ...]


@dataclass(frozen=True)
class ArticleVersion:
    """Immutable historical copy of an article, numbered per article from 1.

    Version N records what the article looked like *before* mutation N.
    """

    article_id: int
    version: int
    title: str
    content: str
    document_url: str | None = None
    document_handle: str | None = None
    tags: tuple[str, ...] = ()
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass
class Article:
    """Core domain entity representing a news article and its lifecycle status.

    Status changes go through the transition methods below, which enforce the
    legal source states and keep ``published_at`` consistent with the status.
    Role and ownership checks live in ``newsroom.domain.access_policy``.
    """

    title: str
    content: str
    author_id: int
    tags: list[str] = field(default_factory=list)
    document_url: str | None = None
    document_handle: str | None = None
    status: ArticleStatus = ArticleStatus.DRAFT
    published_at: datetime | None = None
    view_count: int = 0
    id: int | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_published(self) -> bool:
        return self.status == ArticleStatus.PUBLISHED

    def snapshot(self) -> ArticleSnapshot:
        """Capture the current content fields for the version store."""
        return ArticleSnapshot(
            title=self.title,
            content=self.content,
            document_url=self.document_url,
            document_handle=self.document_handle,
            tags=tuple(self.tags),
        )

    # ── Transitions ──────────────────────────────────────────────────

    def apply_update(
        self,
        now: datetime,
        title: str | None = None,
        content: str | None = None,
        tags: list[str] | None = None,
    ) -> None:
        """Apply a partial content edit. Legal from every status.

        Editing published, scheduled or rejected content sends it back to draft;
        a pending article stays in the approval queue.
        """
        if title is not None:
            self.title = title
        if content is not None:
            self.content = content
        if tags is not None:
            self.tags = list(tags)
        if self.status in (
            ArticleStatus.PUBLISHED,
            ArticleStatus.SCHEDULED,
            ArticleStatus.REJECTED,
        ):
            self._move_to(ArticleStatus.DRAFT)
        self.updated_at = now

    def submit(self, now: datetime) -> None:
        """Send a draft or rejected article to the approval queue."""
        self._require("submit", ArticleStatus.DRAFT, ArticleStatus.REJECTED)
        self._move_to(ArticleStatus.PENDING_APPROVAL)
        self.updated_at = now

    def approve(self, now: datetime, publish_at: datetime | None = None) -> None:
        """Publish now, or schedule for ``publish_at`` when it lies in the future."""
        self._require("approve", ArticleStatus.PENDING_APPROVAL)
        if publish_at is not None and publish_at > now:
            self._move_to(ArticleStatus.SCHEDULED, published_at=publish_at)
        else:
            self._move_to(ArticleStatus.PUBLISHED, published_at=now)
        self.updated_at = now

    def reject(self, now: datetime) -> None:
        self._require("reject", ArticleStatus.PENDING_APPROVAL)
        self._move_to(ArticleStatus.REJECTED)
        self.updated_at = now

    def restore(self, version: ArticleVersion, now: datetime) -> None:
        """Overwrite the content fields from ``version`` and return to draft."""
        self.title = version.title
        self.content = version.content
        self.document_url = version.document_url
        self.document_handle = version.document_handle
        self.tags = list(version.tags)
        self._move_to(ArticleStatus.DRAFT)
        self.updated_at = now

    # ── Helpers ──────────────────────────────────────────────────────

    def _require(self, transition: str, *allowed: ArticleStatus) -> None:
        if self.status not in allowed:
            raise InvalidStateTransitionError(transition, self.status.value)

    def _move_to(self, status: ArticleStatus, published_at: datetime | None = None) -> None:
        self.status = status
        self.published_at = published_at if status.has_publish_time else None
