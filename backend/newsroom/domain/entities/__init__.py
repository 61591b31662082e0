from .article import Article, ArticleSnapshot, ArticleStatus, ArticleVersion
from .principal import Principal, Role

__all__ = [
    "Article",
    "ArticleSnapshot",
    "ArticleStatus",
    "ArticleVersion",
    "Principal",
    "Role",
]
