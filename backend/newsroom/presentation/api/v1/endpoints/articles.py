"""Article lifecycle endpoints."""

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from newsroom.application.schemas import (
    ArticleApprove,
    ArticleCreate,
    ArticlePage,
    ArticleResponse,
    ArticleUpdate,
    ArticleVersionResponse,
    DocumentUpload,
)
from newsroom.application.services import ArticleLifecycleService
from newsroom.domain.entities import ArticleStatus, Principal
from newsroom.domain.exceptions import (
    AccessDeniedError,
    DependencyFailureError,
    EntityNotFoundError,
    InvalidStateTransitionError,
    LifecycleError,
    StorageError,
    UnauthenticatedError,
    ValidationError,
)
from newsroom.infrastructure.dependencies import (
    get_current_principal,
    get_lifecycle_service,
    get_optional_principal,
)

router = APIRouter(prefix="/articles", tags=["Articles"])

_STATUS_CODES: list[tuple[type[LifecycleError], int]] = [
    (EntityNotFoundError, status.HTTP_404_NOT_FOUND),
    (AccessDeniedError, status.HTTP_403_FORBIDDEN),
    (UnauthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (InvalidStateTransitionError, status.HTTP_409_CONFLICT),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (DependencyFailureError, status.HTTP_502_BAD_GATEWAY),
    (StorageError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def _http_error(exc: LifecycleError) -> HTTPException:
    for exc_type, code in _STATUS_CODES:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get("", response_model=ArticlePage)
async def list_articles(
    status_filter: ArticleStatus | None = Query(None, alias="status"),
    skip: int = 0,
    limit: int = 20,
    principal: Principal | None = Depends(get_optional_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> ArticlePage:
    """Retrieve a page of articles. Anonymous callers only see published ones."""
    try:
        articles, total = await service.list_articles(
            principal=principal, status=status_filter, skip=skip, limit=limit
        )
    except LifecycleError as e:
        raise _http_error(e) from e
    return ArticlePage(
        items=[ArticleResponse.model_validate(a) for a in articles],
        total=total,
        skip=skip,
        limit=limit,
    )


@router.get("/{article_id}", response_model=ArticleResponse)
async def get_article(
    article_id: int,
    principal: Principal | None = Depends(get_optional_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> ArticleResponse:
    """Retrieve a single article. Reading a published article counts a view."""
    try:
        article = await service.read_article(article_id, principal)
    except LifecycleError as e:
        raise _http_error(e) from e
    return ArticleResponse.model_validate(article)


@router.post("", response_model=ArticleResponse, status_code=status.HTTP_201_CREATED)
async def create_article(
    title: str = Form(..., min_length=1, max_length=255),
    content: str = Form(""),
    tags: str | None = Form(None),
    document: UploadFile | None = File(None),
    principal: Principal = Depends(get_current_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> ArticleResponse:
    """Create a draft article, optionally with a PDF attachment."""
    upload = None
    if document is not None and document.filename:
        upload = DocumentUpload(
            content=await document.read(),
            content_type=document.content_type or "application/octet-stream",
            filename=document.filename,
        )
    data = ArticleCreate(title=title, content=content, tags=tags)
    try:
        article = await service.create_article(principal, data, document=upload)
    except LifecycleError as e:
        raise _http_error(e) from e
    return ArticleResponse.model_validate(article)


@router.put("/{article_id}", response_model=ArticleResponse)
async def update_article(
    article_id: int,
    data: ArticleUpdate,
    principal: Principal = Depends(get_current_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> ArticleResponse:
    """Edit an article. The previous content is kept as a version."""
    try:
        article = await service.update_article(article_id, principal, data)
    except LifecycleError as e:
        raise _http_error(e) from e
    return ArticleResponse.model_validate(article)


@router.patch("/{article_id}/submit", response_model=ArticleResponse)
async def submit_article(
    article_id: int,
    principal: Principal = Depends(get_current_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> ArticleResponse:
    try:
        article = await service.submit_article(article_id, principal)
    except LifecycleError as e:
        raise _http_error(e) from e
    return ArticleResponse.model_validate(article)


@router.patch("/{article_id}/approve", response_model=ArticleResponse)
async def approve_article(
    article_id: int,
    data: ArticleApprove | None = None,
    principal: Principal = Depends(get_current_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> ArticleResponse:
    """Publish now, or schedule when ``publish_at`` is in the future."""
    publish_at = data.publish_at if data else None
    try:
        article = await service.approve_article(article_id, principal, publish_at=publish_at)
    except LifecycleError as e:
        raise _http_error(e) from e
    return ArticleResponse.model_validate(article)


@router.patch("/{article_id}/reject", response_model=ArticleResponse)
async def reject_article(
    article_id: int,
    principal: Principal = Depends(get_current_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> ArticleResponse:
    try:
        article = await service.reject_article(article_id, principal)
    except LifecycleError as e:
        raise _http_error(e) from e
    return ArticleResponse.model_validate(article)


@router.get("/{article_id}/versions", response_model=list[ArticleVersionResponse])
async def list_versions(
    article_id: int,
    principal: Principal = Depends(get_current_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> list[ArticleVersionResponse]:
    try:
        versions = await service.list_versions(article_id, principal)
    except LifecycleError as e:
        raise _http_error(e) from e
    return [ArticleVersionResponse.model_validate(v) for v in versions]


@router.patch("/{article_id}/rollback/{version_id}", response_model=ArticleResponse)
async def rollback_article(
    article_id: int,
    version_id: int,
    principal: Principal = Depends(get_current_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> ArticleResponse:
    """Restore the content of an earlier version; the article returns to draft."""
    try:
        article = await service.rollback_article(article_id, version_id, principal)
    except LifecycleError as e:
        raise _http_error(e) from e
    return ArticleResponse.model_validate(article)


@router.delete("/{article_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_article(
    article_id: int,
    principal: Principal = Depends(get_current_principal),
    service: ArticleLifecycleService = Depends(get_lifecycle_service),
) -> None:
    """Delete an article, its versions and its attachments."""
    try:
        await service.delete_article(article_id, principal)
    except LifecycleError as e:
        raise _http_error(e) from e
