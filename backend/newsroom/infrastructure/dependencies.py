"""FastAPI dependency injection — wires infrastructure to application layer."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from newsroom.config import get_settings
from newsroom.application.interfaces import BlobStore, PrincipalProvider, UnitOfWorkFactory
from newsroom.application.services import ArticleLifecycleService
from newsroom.domain.entities import Principal
from newsroom.domain.exceptions import UnauthenticatedError
from newsroom.infrastructure.auth.jwt_principal_provider import JWTPrincipalProvider
from newsroom.infrastructure.database.session import async_session_factory
from newsroom.infrastructure.database.unit_of_work import sqlalchemy_uow_factory
from newsroom.infrastructure.storage.local_file_storage import LocalBlobStore

_bearer = HTTPBearer(auto_error=False)


def get_uow_factory() -> UnitOfWorkFactory:
    """Provides a unit-of-work factory bound to the application's session factory."""
    return sqlalchemy_uow_factory(async_session_factory)


def get_blob_store() -> BlobStore:
    settings = get_settings()
    return LocalBlobStore(upload_dir=settings.upload_dir, public_base_url=settings.public_base_url)


def get_lifecycle_service(
    uow_factory: UnitOfWorkFactory = Depends(get_uow_factory),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ArticleLifecycleService:
    """Provides an ArticleLifecycleService with its ports wired up."""
    settings = get_settings()
    return ArticleLifecycleService(
        uow_factory=uow_factory,
        blob_store=blob_store,
        allowed_document_types=tuple(settings.allowed_document_types),
        max_document_bytes=settings.max_upload_bytes,
    )


def get_principal_provider() -> PrincipalProvider:
    settings = get_settings()
    return JWTPrincipalProvider(secret_key=settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def get_optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    provider: PrincipalProvider = Depends(get_principal_provider),
) -> Principal | None:
    """Resolve the bearer token if one was sent; anonymous callers get ``None``.

    A token that is present but invalid is still rejected with 401.
    """
    if credentials is None:
        return None
    try:
        return provider.authenticate(credentials.credentials)
    except UnauthenticatedError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )


def get_current_principal(
    principal: Principal | None = Depends(get_optional_principal),
) -> Principal:
    """Like ``get_optional_principal`` but authentication is mandatory."""
    if principal is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal
