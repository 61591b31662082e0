from .article import (
    ArticleApprove,
    ArticleCreate,
    ArticlePage,
    ArticleResponse,
    ArticleUpdate,
    ArticleVersionResponse,
    DocumentUpload,
)

__all__ = [
    "ArticleApprove",
    "ArticleCreate",
    "ArticlePage",
    "ArticleResponse",
    "ArticleUpdate",
    "ArticleVersionResponse",
    "DocumentUpload",
]
