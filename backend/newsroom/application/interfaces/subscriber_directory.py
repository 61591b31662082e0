"""Port for the newsletter audience."""

from abc import ABC, abstractmethod


class SubscriberDirectory(ABC):
    """Read-only view of the subscriber list maintained by the subscription flow."""

    @abstractmethod
    async def confirmed_emails(self) -> list[str]:
        """Email addresses of every subscriber who confirmed their subscription."""
        ...
