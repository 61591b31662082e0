"""Read-only subscriber lookup for the weekly digest."""

from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from newsroom.application.interfaces import SubscriberDirectory
from newsroom.domain.exceptions import StorageError
from newsroom.infrastructure.database.models import SubscriberModel


class SQLAlchemySubscriberDirectory(SubscriberDirectory):
    """Opens its own short-lived session per lookup; the digest runs outside any request."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self._session_factory = session_factory

    async def confirmed_emails(self) -> list[str]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(
                    select(SubscriberModel.email)
                    .where(SubscriberModel.confirmed.is_(True))
                    .order_by(SubscriberModel.id.asc())
                )
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageError(f"Could not load subscribers: {exc}") from exc
