"""Access policy — one pure predicate per lifecycle transition.

Every predicate takes ``(role, principal_id, owner_id, status)`` and answers
allow/deny. Roles are not a single ranking: editors and admins share the staff
privileges, while a reporter's authorship of an article grants rights that are
independent of that hierarchy (``update`` and ``submit``).
"""

from collections.abc import Callable
from enum import Enum

from newsroom.domain.entities import Article, ArticleStatus, Principal, Role
from newsroom.domain.exceptions import AccessDeniedError

Predicate = Callable[[Role, int, int | None, ArticleStatus | None], bool]

_AUTHOR_EDITABLE = (ArticleStatus.DRAFT, ArticleStatus.REJECTED)


class Transition(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    ROLLBACK = "rollback"
    DELETE = "delete"
    VIEW = "view"
    LIST_VERSIONS = "list_versions"


def can_create(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    return role in (Role.REPORTER, Role.EDITOR, Role.ADMIN)


def can_update(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    if role.is_staff:
        return True
    return principal_id == owner_id and status in _AUTHOR_EDITABLE


def can_submit(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    return principal_id == owner_id


def can_approve(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    return role.is_staff


def can_reject(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    return role.is_staff


def can_rollback(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    return role.is_staff


def can_delete(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    return role == Role.ADMIN


def can_view(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    """Published articles are public; anything else is limited to its author and staff."""
    if status == ArticleStatus.PUBLISHED:
        return True
    return role.is_staff or principal_id == owner_id


def can_list_versions(role: Role, principal_id: int, owner_id: int | None, status: ArticleStatus | None) -> bool:
    return role.is_staff


POLICIES: dict[Transition, Predicate] = {
    Transition.CREATE: can_create,
    Transition.UPDATE: can_update,
    Transition.SUBMIT: can_submit,
    Transition.APPROVE: can_approve,
    Transition.REJECT: can_reject,
    Transition.ROLLBACK: can_rollback,
    Transition.DELETE: can_delete,
    Transition.VIEW: can_view,
    Transition.LIST_VERSIONS: can_list_versions,
}


def is_allowed(transition: Transition, principal: Principal | None, article: Article | None = None) -> bool:
    """Evaluate the policy for ``transition``. Anonymous callers may only view published articles."""
    owner_id = article.author_id if article is not None else None
    status = article.status if article is not None else None
    if principal is None:
        return transition == Transition.VIEW and status == ArticleStatus.PUBLISHED
    return POLICIES[transition](principal.role, principal.id, owner_id, status)


def authorize(transition: Transition, principal: Principal | None, article: Article | None = None) -> None:
    """Raise ``AccessDeniedError`` unless the policy allows ``transition``."""
    if not is_allowed(transition, principal, article):
        raise AccessDeniedError(transition.value, principal.id if principal else None)
