"""Unit tests for the ArticleLifecycleService."""

import asyncio
from datetime import datetime, timedelta

import pytest

from newsroom.application.schemas import ArticleCreate, ArticleUpdate, DocumentUpload
from newsroom.application.services import ArticleLifecycleService
from newsroom.domain.entities import ArticleStatus
from newsroom.domain.exceptions import (
    AccessDeniedError,
    DependencyFailureError,
    EntityNotFoundError,
    InvalidStateTransitionError,
    StorageError,
    ValidationError,
)

PDF = DocumentUpload(content=b"%PDF-1.4 minimal", content_type="application/pdf", filename="report.pdf")


@pytest.fixture
def service(store, blob_store, clock) -> ArticleLifecycleService:
    return ArticleLifecycleService(store.uow, blob_store=blob_store, clock=clock)


async def _pending(service, reporter, title="Harbour reopens"):
    article = await service.create_article(reporter, ArticleCreate(title=title, content="Body"))
    return await service.submit_article(article.id, reporter)


async def _published(service, reporter, editor, title="Harbour reopens"):
    article = await _pending(service, reporter, title)
    return await service.approve_article(article.id, editor)


# ── Creation ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_article_starts_as_draft(service, reporter, store):
    article = await service.create_article(
        reporter, ArticleCreate(title="  Flood relief  ", content="Supplies", tags="relief, floods, ")
    )
    assert article.id is not None
    assert article.title == "Flood relief"
    assert article.status == ArticleStatus.DRAFT
    assert article.author_id == reporter.id
    assert article.tags == ["relief", "floods"]
    assert article.published_at is None
    assert store.versions_of(article.id) == []


@pytest.mark.asyncio
async def test_create_article_rejects_blank_title(service, reporter, store):
    with pytest.raises(ValidationError):
        await service.create_article(reporter, ArticleCreate(title="   "))
    assert store.articles == {}


@pytest.mark.asyncio
async def test_create_article_with_document(service, reporter, blob_store):
    article = await service.create_article(reporter, ArticleCreate(title="Budget"), document=PDF)
    assert article.document_url.startswith("memory://")
    assert article.document_handle in blob_store.blobs


@pytest.mark.asyncio
async def test_create_article_rejects_non_pdf_document(service, reporter, blob_store, store):
    upload = DocumentUpload(content=b"GIF89a", content_type="image/gif", filename="cat.gif")
    with pytest.raises(ValidationError):
        await service.create_article(reporter, ArticleCreate(title="Cats"), document=upload)
    assert blob_store.blobs == {}
    assert store.articles == {}


@pytest.mark.asyncio
async def test_create_article_fails_when_blob_store_is_down(service, reporter, blob_store, store):
    blob_store.fail = True
    with pytest.raises(DependencyFailureError):
        await service.create_article(reporter, ArticleCreate(title="Budget"), document=PDF)
    assert store.articles == {}


# ── Lifecycle ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_end_to_end_lifecycle(service, reporter, editor, store, clock):
    article = await service.create_article(reporter, ArticleCreate(title="Bridge", content="Original"))
    article = await service.submit_article(article.id, reporter)
    assert article.status == ArticleStatus.PENDING_APPROVAL

    article = await service.reject_article(article.id, editor)
    assert article.status == ArticleStatus.REJECTED

    article = await service.update_article(article.id, reporter, ArticleUpdate(content="Revised"))
    assert article.status == ArticleStatus.DRAFT
    versions = store.versions_of(article.id)
    assert [v.version for v in versions] == [1]
    assert versions[0].content == "Original"

    article = await service.submit_article(article.id, reporter)
    article = await service.approve_article(article.id, editor)
    assert article.status == ArticleStatus.PUBLISHED
    assert article.published_at == clock.now
    assert article.view_count == 0
    assert len(store.versions_of(article.id)) == 1

    read = await service.read_article(article.id)
    assert read.content == "Revised"
    assert read.view_count == 1
    assert store.articles[article.id].view_count == 1


@pytest.mark.asyncio
async def test_approve_with_future_publish_time_schedules(service, reporter, editor, clock):
    article = await _pending(service, reporter)
    publish_at = clock.now + timedelta(hours=2)
    approved = await service.approve_article(article.id, editor, publish_at=publish_at)
    assert approved.status == ArticleStatus.SCHEDULED
    assert approved.published_at == publish_at


@pytest.mark.asyncio
async def test_approve_with_past_publish_time_publishes_now(service, reporter, editor, clock):
    article = await _pending(service, reporter)
    approved = await service.approve_article(article.id, editor, publish_at=clock.now - timedelta(days=1))
    assert approved.status == ArticleStatus.PUBLISHED
    assert approved.published_at == clock.now


@pytest.mark.asyncio
async def test_approve_treats_naive_publish_time_as_utc(service, reporter, editor, clock):
    article = await _pending(service, reporter)
    naive = (clock.now + timedelta(hours=1)).replace(tzinfo=None)
    approved = await service.approve_article(article.id, editor, publish_at=naive)
    assert approved.status == ArticleStatus.SCHEDULED
    assert approved.published_at == clock.now + timedelta(hours=1)


@pytest.mark.asyncio
async def test_illegal_transitions_raise(service, reporter, editor):
    draft = await service.create_article(reporter, ArticleCreate(title="Draft"))
    with pytest.raises(InvalidStateTransitionError):
        await service.approve_article(draft.id, editor)
    with pytest.raises(InvalidStateTransitionError):
        await service.reject_article(draft.id, editor)

    published = await _published(service, reporter, editor, title="Live")
    with pytest.raises(InvalidStateTransitionError):
        await service.submit_article(published.id, reporter)


@pytest.mark.asyncio
async def test_editing_scheduled_article_returns_it_to_draft(service, reporter, editor, clock):
    article = await _pending(service, reporter)
    await service.approve_article(article.id, editor, publish_at=clock.now + timedelta(days=1))
    edited = await service.update_article(article.id, editor, ArticleUpdate(title="Corrected"))
    assert edited.status == ArticleStatus.DRAFT
    assert edited.published_at is None


@pytest.mark.asyncio
async def test_editing_published_article_unpublishes_it(service, reporter, editor):
    article = await _published(service, reporter, editor)
    edited = await service.update_article(article.id, editor, ArticleUpdate(tags=["ports"]))
    assert edited.status == ArticleStatus.DRAFT
    assert edited.published_at is None
    assert edited.tags == ["ports"]


@pytest.mark.asyncio
async def test_transition_on_missing_article(service, editor):
    with pytest.raises(EntityNotFoundError):
        await service.approve_article(404, editor)


# ── Access ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_reporter_cannot_edit_someone_elses_article(service, reporter, other_reporter, editor):
    article = await service.create_article(reporter, ArticleCreate(title="Mine"))
    with pytest.raises(AccessDeniedError):
        await service.update_article(article.id, other_reporter, ArticleUpdate(title="Theirs"))

    edited = await service.update_article(article.id, editor, ArticleUpdate(title="Edited"))
    assert edited.title == "Edited"


@pytest.mark.asyncio
async def test_reporter_cannot_approve_or_delete(service, reporter):
    article = await _pending(service, reporter)
    with pytest.raises(AccessDeniedError):
        await service.approve_article(article.id, reporter)
    with pytest.raises(AccessDeniedError):
        await service.delete_article(article.id, reporter)


@pytest.mark.asyncio
async def test_only_admin_deletes(service, reporter, editor, admin, store):
    article = await service.create_article(reporter, ArticleCreate(title="Obsolete"))
    with pytest.raises(AccessDeniedError):
        await service.delete_article(article.id, editor)
    await service.delete_article(article.id, admin)
    assert article.id not in store.articles


@pytest.mark.asyncio
async def test_unpublished_article_hidden_from_anonymous_and_other_reporters(
    service, reporter, other_reporter, editor
):
    article = await service.create_article(reporter, ArticleCreate(title="Embargoed"))
    with pytest.raises(EntityNotFoundError):
        await service.read_article(article.id)
    with pytest.raises(EntityNotFoundError):
        await service.read_article(article.id, other_reporter)

    own = await service.read_article(article.id, reporter)
    staff = await service.read_article(article.id, editor)
    assert own.view_count == 0
    assert staff.view_count == 0


@pytest.mark.asyncio
async def test_each_published_read_counts_once(service, reporter, editor):
    article = await _published(service, reporter, editor)
    await service.read_article(article.id)
    second = await service.read_article(article.id, reporter)
    assert second.view_count == 2


# ── Versions ────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_concurrent_updates_get_distinct_version_numbers(service, reporter, editor, store):
    article = await service.create_article(reporter, ArticleCreate(title="Live blog"))

    await asyncio.gather(
        *(
            service.update_article(article.id, editor, ArticleUpdate(content=f"update {i}"))
            for i in range(10)
        )
    )

    assert [v.version for v in store.versions_of(article.id)] == list(range(1, 11))


@pytest.mark.asyncio
async def test_rollback_twice_to_same_version(service, reporter, editor, store):
    article = await service.create_article(reporter, ArticleCreate(title="Election", content="first"))
    await service.update_article(article.id, reporter, ArticleUpdate(content="second"))
    await service.update_article(article.id, reporter, ArticleUpdate(content="third"))
    v1 = store.versions_of(article.id)[0]

    once = await service.rollback_article(article.id, v1.id, editor)
    twice = await service.rollback_article(article.id, v1.id, editor)

    assert once.content == twice.content == "first"
    assert twice.status == ArticleStatus.DRAFT
    versions = store.versions_of(article.id)
    assert [v.version for v in versions] == [1, 2, 3, 4]
    assert versions[2].content == "third"
    assert versions[3].content == "first"


@pytest.mark.asyncio
async def test_rollback_to_version_of_another_article(service, reporter, editor, store):
    a = await service.create_article(reporter, ArticleCreate(title="A"))
    b = await service.create_article(reporter, ArticleCreate(title="B"))
    await service.update_article(b.id, reporter, ArticleUpdate(title="B2"))
    foreign = store.versions_of(b.id)[0]

    with pytest.raises(EntityNotFoundError):
        await service.rollback_article(a.id, foreign.id, editor)


@pytest.mark.asyncio
async def test_reporter_cannot_rollback_or_list_versions(service, reporter, editor):
    article = await service.create_article(reporter, ArticleCreate(title="A"))
    await service.update_article(article.id, reporter, ArticleUpdate(title="B"))

    with pytest.raises(AccessDeniedError):
        await service.list_versions(article.id, reporter)
    versions = await service.list_versions(article.id, editor)
    with pytest.raises(AccessDeniedError):
        await service.rollback_article(article.id, versions[0].id, reporter)


@pytest.mark.asyncio
async def test_version_conflict_is_retried_once(service, reporter, store):
    article = await service.create_article(reporter, ArticleCreate(title="Retry"))
    store.version_conflicts = 1

    updated = await service.update_article(article.id, reporter, ArticleUpdate(title="Retried"))

    assert updated.title == "Retried"
    assert [v.version for v in store.versions_of(article.id)] == [1]


@pytest.mark.asyncio
async def test_second_version_conflict_becomes_storage_error(service, reporter, store):
    article = await service.create_article(reporter, ArticleCreate(title="Retry"))
    store.version_conflicts = 2

    with pytest.raises(StorageError):
        await service.update_article(article.id, reporter, ArticleUpdate(title="Lost"))

    assert store.articles[article.id].title == "Retry"
    assert store.versions_of(article.id) == []


# ── Delete & list ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_delete_removes_versions_and_documents(service, reporter, admin, store, blob_store):
    article = await service.create_article(reporter, ArticleCreate(title="Scoop"), document=PDF)
    await service.update_article(article.id, reporter, ArticleUpdate(title="Scoop, updated"))

    await service.delete_article(article.id, admin)

    assert store.articles == {}
    assert store.versions_of(article.id) == []
    assert blob_store.blobs == {}


@pytest.mark.asyncio
async def test_delete_missing_article(service, admin):
    with pytest.raises(EntityNotFoundError):
        await service.delete_article(12345, admin)


@pytest.mark.asyncio
async def test_list_articles_filters_by_visibility(service, reporter, other_reporter, editor, clock):
    await _published(service, reporter, editor, title="Public")
    await service.create_article(reporter, ArticleCreate(title="My draft"))
    await service.create_article(other_reporter, ArticleCreate(title="Their draft"))

    public, total = await service.list_articles()
    assert [a.title for a in public] == ["Public"]
    assert total == 1

    own, _ = await service.list_articles(reporter, status=ArticleStatus.DRAFT)
    assert [a.title for a in own] == ["My draft"]

    every, total = await service.list_articles(editor, status=ArticleStatus.DRAFT)
    assert {a.title for a in every} == {"My draft", "Their draft"}
    assert total == 2


@pytest.mark.asyncio
async def test_list_articles_validates_paging(service):
    with pytest.raises(ValidationError):
        await service.list_articles(limit=0)
    with pytest.raises(ValidationError):
        await service.list_articles(skip=-1)
