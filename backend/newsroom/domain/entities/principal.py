"""Authenticated actor supplied by the identity collaborator."""

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Editorial roles. Editors and admins are "staff"."""

    REPORTER = "reporter"
    EDITOR = "editor"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        return self in (Role.EDITOR, Role.ADMIN)


@dataclass(frozen=True)
class Principal:
    id: int
    role: Role
