from .article_repository import SQLAlchemyArticleRepository
from .version_repository import SQLAlchemyArticleVersionRepository
from .subscriber_repository import SQLAlchemySubscriberDirectory

__all__ = [
    "SQLAlchemyArticleRepository",
    "SQLAlchemyArticleVersionRepository",
    "SQLAlchemySubscriberDirectory",
]
