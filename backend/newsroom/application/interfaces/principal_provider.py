"""Port for resolving bearer credentials into principals."""

from abc import ABC, abstractmethod

from newsroom.domain.entities import Principal


class PrincipalProvider(ABC):

    @abstractmethod
    def authenticate(self, token: str) -> Principal:
        """Return the principal for ``token`` or raise ``UnauthenticatedError``."""
        ...
