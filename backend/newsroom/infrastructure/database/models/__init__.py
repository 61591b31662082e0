from .article import ArticleModel, ArticleVersionModel
from .subscriber import SubscriberModel

__all__ = [
    "ArticleModel",
    "ArticleVersionModel",
    "SubscriberModel",
]
