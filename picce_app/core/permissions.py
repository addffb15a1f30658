from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable

from .exceptions import AuthorizationError, NotFoundError, SemanticError
from .models import User, VisibilityMode

Role = User.Role

# Roles each role may create or assign on peer accounts. ADMIN and GUEST are
# never assignable through the API.
MANAGEABLE_ROLES: dict[str, frozenset[str]] = {
    Role.ADMIN: frozenset({Role.COORDINATOR, Role.PUBLISHER, Role.APPLIER, Role.USER}),
    Role.COORDINATOR: frozenset({Role.PUBLISHER, Role.APPLIER, Role.USER}),
    Role.PUBLISHER: frozenset({Role.USER}),
    Role.APPLIER: frozenset({Role.USER}),
    Role.USER: frozenset(),
    Role.GUEST: frozenset(),
}

APPLIER_ROLES = frozenset({Role.APPLIER, Role.PUBLISHER, Role.COORDINATOR})
MANAGER_ROLES = frozenset({Role.PUBLISHER, Role.COORDINATOR})


@dataclass(frozen=True)
class Principal:
    """Snapshot of the requesting user taken once per request."""

    id: int
    role: str
    institution_id: int | None
    classroom_ids: frozenset[int] = frozenset()

    @classmethod
    def from_user(cls, user) -> "Principal":
        return cls(
            id=user.id,
            role=user.role,
            institution_id=user.institution_id,
            classroom_ids=frozenset(user.classrooms.values_list("id", flat=True)),
        )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def shares_institution(self, institution_id: int | None) -> bool:
        return self.institution_id is not None and self.institution_id == institution_id

    def coordinates(self, institution_id: int | None) -> bool:
        return self.role == Role.COORDINATOR and self.shares_institution(institution_id)


def mode_grants(mode: str, principal: Principal) -> bool:
    if mode == VisibilityMode.PUBLIC:
        return True
    return mode == VisibilityMode.AUTHENTICATED and principal.role != Role.GUEST


def is_listed(principal: Principal, user_ids: Iterable[int], classroom_ids: Iterable[int]) -> bool:
    return principal.id in set(user_ids) or bool(principal.classroom_ids & set(classroom_ids))


def require_actions(principal: Principal, ids: Iterable[int], detailed: list, action: str, derive: Callable) -> None:
    """Raise unless ``action`` is permitted on every entity in ``detailed``.

    Ids that do not exist, or exist but cannot be read by the principal, are
    reported as not found so that existence is never leaked.
    """
    wanted = set(ids)
    found = {entity.id for entity in detailed}
    if wanted - found:
        raise NotFoundError("The requested entity was not found.", {"ids": sorted(wanted - found)})
    if principal.is_admin:
        return
    for entity in detailed:
        actions = derive(principal, entity)
        if not actions.to_get:
            raise NotFoundError("The requested entity was not found.", {"ids": [entity.id]})
        if not getattr(actions, f"to_{action}"):
            raise AuthorizationError()


def validate_hierarchy(principal: Principal, role: str | None, institution_id: int | None, user_id: int | None = None) -> None:
    """Check that ``principal`` may give a peer account ``role`` and ``institution_id``."""
    if role is not None:
        if role not in MANAGEABLE_ROLES.get(principal.role, frozenset()):
            raise AuthorizationError("This user cannot assign the requested role.")
        if principal.id == user_id:
            raise AuthorizationError("Users cannot change their own role.")
        if role == Role.COORDINATOR and institution_id is None:
            raise SemanticError("Coordinators must belong to an institution.")
    if institution_id is not None:
        if not principal.is_admin and principal.institution_id != institution_id:
            raise AuthorizationError("Users cannot be placed in institutions the requester does not belong to.")
        if principal.is_admin and principal.id == user_id:
            raise SemanticError("Administrators cannot belong to an institution.")


# Peer users


@dataclass(frozen=True)
class DetailedUser:
    id: int
    role: str
    institution_id: int | None
    creator_id: int | None


@dataclass(frozen=True)
class PeerUserRoles:
    creator: bool
    coordinator: bool
    institution_member: bool
    itself: bool
    viewer: bool


@dataclass(frozen=True)
class PeerUserActions:
    to_update: bool
    to_delete: bool
    to_get: bool


def get_detailed_users(user_ids: Iterable[int]) -> list[DetailedUser]:
    rows = User.objects.filter(id__in=list(user_ids)).values_list("id", "role", "institution_id", "creator_id")
    return [DetailedUser(*row) for row in rows]


def get_peer_user_roles(principal: Principal, user: DetailedUser) -> PeerUserRoles:
    return PeerUserRoles(
        creator=user.creator_id == principal.id,
        coordinator=principal.coordinates(user.institution_id),
        institution_member=principal.shares_institution(user.institution_id),
        itself=user.id == principal.id,
        viewer=user.institution_id is None and principal.role not in (Role.USER, Role.GUEST),
    )


def get_peer_user_actions(principal: Principal, user: DetailedUser, roles: PeerUserRoles | None = None) -> PeerUserActions:
    roles = roles or get_peer_user_roles(principal, user)
    manages = roles.creator or roles.coordinator or roles.itself or principal.is_admin
    peer = user.role not in (Role.GUEST, Role.ADMIN)
    allowed = manages and peer
    return PeerUserActions(
        to_update=allowed,
        to_delete=allowed,
        to_get=allowed or (peer and (roles.viewer or roles.institution_member)),
    )


def get_visible_user_fields(principal: Principal, roles: PeerUserRoles | None, ignore_filters: bool = False) -> dict:
    if ignore_filters or roles is None:
        full = base = ignore_filters
    else:
        full = roles.creator or roles.coordinator or roles.itself or principal.is_admin
        base = full or roles.viewer or roles.institution_member
    return {
        "id": base,
        "username": base,
        "name": full,
        "role": full,
        "date_joined": full,
        "updated_at": full,
        "accepted_terms": full,
        "institution": {"id": base, "name": base},
        "classrooms": {"id": base, "name": base},
    }


def check_user_authorization(principal: Principal, user_ids: Iterable[int], action: str) -> list[DetailedUser]:
    user_ids = list(user_ids)
    if action == "create":
        if principal.role in (Role.USER, Role.GUEST):
            raise AuthorizationError()
        return []
    detailed = get_detailed_users(user_ids)
    require_actions(principal, user_ids, detailed, action, get_peer_user_actions)
    return detailed
