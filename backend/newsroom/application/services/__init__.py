from .article_service import ArticleLifecycleService
from .publication_scheduler import PromotionReport, PublicationScheduler
from .weekly_digest import DigestReport, WeeklyDigestService

__all__ = [
    "ArticleLifecycleService",
    "PromotionReport",
    "PublicationScheduler",
    "DigestReport",
    "WeeklyDigestService",
]
