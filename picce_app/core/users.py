from __future__ import annotations

import logging
from typing import Mapping

from django.db import transaction

from picce_app.applications.upsert import answer_file_paths
from picce_app.protocols.upsert import protocol_file_paths

from .exceptions import ConflictError, DanglingReferenceError
from .files import discard_blobs_on_commit
from .models import Institution, User
from .permissions import Principal, validate_hierarchy
from .validators import validate_user_classrooms

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "accepted_terms")


def _validate_institution(institution_id: int | None) -> None:
    if institution_id is not None and not Institution.objects.filter(id=institution_id).exists():
        raise DanglingReferenceError(f"Unknown institution: {institution_id}.", {"institution": institution_id})


def _validate_username(username: str, user_id: int | None = None) -> None:
    if User.objects.filter(username=username).exclude(id=user_id).exists():
        raise ConflictError(f"Username {username} is already taken.", {"username": username})


def create_user(principal: Principal, creator: User, data: Mapping) -> User:
    validate_hierarchy(principal, data["role"], data.get("institution"))
    _validate_institution(data.get("institution"))
    _validate_username(data["username"])
    validate_user_classrooms(data["role"], data.get("institution"), data.get("classrooms", []))
    with transaction.atomic():
        user = User.objects.create_user(
            username=data["username"],
            password=data["password"],
            name=data.get("name", ""),
            role=data["role"],
            institution_id=data.get("institution"),
            accepted_terms=data.get("accepted_terms", False),
            creator=creator,
        )
        user.classrooms.set(data.get("classrooms", []))
    logger.info("User %s created by user %s", user.id, creator.id)
    return user


def update_user(principal: Principal, user: User, data: Mapping) -> User:
    """Apply a partial update; only fields present in ``data`` change."""
    role = data.get("role", user.role)
    institution_id = data.get("institution", user.institution_id)
    validate_hierarchy(
        principal,
        role if role != user.role else None,
        institution_id if institution_id != user.institution_id else None,
        user_id=user.id,
    )
    _validate_institution(institution_id)
    if "username" in data:
        _validate_username(data["username"], user.id)
    classroom_ids = data.get("classrooms", user.classrooms.values_list("id", flat=True))
    validate_user_classrooms(role, institution_id, classroom_ids)

    with transaction.atomic():
        user.username = data.get("username", user.username)
        user.role = role
        user.institution_id = institution_id
        for name in PROFILE_FIELDS:
            if name in data:
                setattr(user, name, data[name])
        if "password" in data:
            user.set_password(data["password"])
        user.save()
        if "classrooms" in data:
            user.classrooms.set(data["classrooms"])
    logger.info("User %s updated", user.id)
    return user


def cascaded_file_paths(user: User) -> set[str]:
    """Blobs owned by rows that cascade away with ``user``."""
    paths = answer_file_paths(user_id=user.id) | answer_file_paths(application__applier_id=user.id)
    for protocol_id in user.created_protocols.values_list("id", flat=True):
        paths |= protocol_file_paths(protocol_id)
    return paths


def delete_user(user: User) -> None:
    user_id = user.id
    with transaction.atomic():
        paths = cascaded_file_paths(user)
        user.delete()
        discard_blobs_on_commit(paths)
    logger.info("User %s deleted", user_id)
