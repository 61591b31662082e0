from .base import Base
from .session import async_session_factory, build_engine, build_session_factory, engine
from .models import ArticleModel, ArticleVersionModel, SubscriberModel

__all__ = [
    "Base",
    "engine",
    "async_session_factory",
    "build_engine",
    "build_session_factory",
    "ArticleModel",
    "ArticleVersionModel",
    "SubscriberModel",
]
