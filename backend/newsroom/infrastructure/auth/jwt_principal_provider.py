"""JWT adapter for the PrincipalProvider port.

Tokens are issued elsewhere; this side only verifies them. Expected claims:
``sub`` (the numeric principal id) and ``role`` (reporter | editor | admin).
"""

import logging

from jose import JWTError, jwt

from newsroom.application.interfaces import PrincipalProvider
from newsroom.domain.entities import Principal, Role
from newsroom.domain.exceptions import UnauthenticatedError

logger = logging.getLogger(__name__)


class JWTPrincipalProvider(PrincipalProvider):
    """Verifies signed bearer tokens with python-jose."""

    def __init__(self, secret_key: str, algorithm: str = "HS256"):
        self._secret_key = secret_key
        self._algorithm = algorithm

    def authenticate(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.debug("Rejected bearer token: %s", exc)
            raise UnauthenticatedError("Invalid or expired token") from exc

        try:
            principal_id = int(payload["sub"])
            role = Role(payload["role"])
        except (KeyError, TypeError, ValueError) as exc:
            raise UnauthenticatedError("Token is missing a valid 'sub' or 'role' claim") from exc

        return Principal(id=principal_id, role=role)
