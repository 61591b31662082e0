"""Port for outbound notifications (email)."""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Best-effort delivery. Callers log failures instead of propagating them."""

    @abstractmethod
    async def send(self, recipient: str, subject: str, body_html: str) -> None:
        """Deliver one message. Raises ``DependencyFailureError`` on failure."""
        ...
