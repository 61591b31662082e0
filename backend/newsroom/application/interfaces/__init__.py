from .article_repository import ArticleRepository
from .version_repository import ArticleVersionRepository
from .unit_of_work import UnitOfWork, UnitOfWorkFactory
from .blob_store import BlobStore, StoredBlob
from .notifier import Notifier
from .principal_provider import PrincipalProvider
from .subscriber_directory import SubscriberDirectory

__all__ = [
    "ArticleRepository",
    "ArticleVersionRepository",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "BlobStore",
    "StoredBlob",
    "Notifier",
    "PrincipalProvider",
    "SubscriberDirectory",
]
