"""Look-aside checks of user and classroom references carried by write payloads."""

from __future__ import annotations

from typing import Iterable

from .exceptions import DanglingReferenceError, SemanticError
from .models import Classroom, User
from .permissions import APPLIER_ROLES, MANAGER_ROLES

Role = User.Role


def _load_users(user_ids: Iterable[int], label: str) -> list[User]:
    wanted = set(user_ids)
    users = list(User.objects.filter(id__in=wanted))
    missing = wanted - {user.id for user in users}
    if missing:
        raise DanglingReferenceError(f"Unknown {label}: {sorted(missing)}.", {label: sorted(missing)})
    return users


def validate_managers(user_ids: Iterable[int], institution_id: int | None = None) -> None:
    for user in _load_users(user_ids, "managers"):
        if user.role not in MANAGER_ROLES:
            raise SemanticError(f"User {user.id} cannot manage protocols with role {user.role}.")
        if institution_id is not None and user.institution_id != institution_id:
            raise SemanticError(f"Manager {user.id} does not belong to the creator institution.")


def validate_appliers(user_ids: Iterable[int], institution_id: int | None = None) -> None:
    for user in _load_users(user_ids, "appliers"):
        if user.role not in APPLIER_ROLES:
            raise SemanticError(f"User {user.id} cannot apply protocols with role {user.role}.")
        if institution_id is not None and user.institution_id != institution_id:
            raise SemanticError(f"Applier {user.id} does not belong to the creator institution.")


def validate_viewers(user_ids: Iterable[int]) -> None:
    for user in _load_users(user_ids, "viewers"):
        if user.role in (Role.ADMIN, Role.GUEST):
            raise SemanticError(f"User {user.id} cannot be granted viewing rights.")


def validate_classrooms(classroom_ids: Iterable[int]) -> None:
    wanted = set(classroom_ids)
    found = set(Classroom.objects.filter(id__in=wanted).values_list("id", flat=True))
    if wanted - found:
        raise DanglingReferenceError(f"Unknown classrooms: {sorted(wanted - found)}.", {"classrooms": sorted(wanted - found)})


def validate_user_classrooms(role: str, institution_id: int | None, classroom_ids: Iterable[int]) -> None:
    """Members can only join classrooms of their own institution."""
    classroom_ids = set(classroom_ids)
    validate_classrooms(classroom_ids)
    if not classroom_ids:
        return
    if role in (Role.ADMIN, Role.GUEST):
        raise SemanticError("You cannot assign classrooms to this user.")
    if Classroom.objects.filter(id__in=classroom_ids).exclude(institution_id=institution_id).exists():
        raise SemanticError("Users cannot be placed in classrooms of institutions to which they do not belong.")
