from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from django.db.models import Count

from picce_app.core.exceptions import AuthorizationError, ConflictError
from picce_app.core.permissions import APPLIER_ROLES, Principal, Role, is_listed, mode_grants, require_actions

from .models import Protocol


@dataclass(frozen=True)
class DetailedProtocol:
    """Ownership and grant references of a protocol, loaded for permission checks."""

    id: int
    enabled: bool
    visibility: str
    applicability: str
    answers_visibility: str
    creator_id: int
    creator_institution_id: int | None
    manager_ids: frozenset[int]
    applier_ids: frozenset[int]
    viewer_user_ids: frozenset[int]
    viewer_classroom_ids: frozenset[int]
    answers_viewer_user_ids: frozenset[int]
    answers_viewer_classroom_ids: frozenset[int]
    application_count: int


@dataclass(frozen=True)
class ProtocolRoles:
    creator: bool
    manager: bool
    coordinator: bool
    applier: bool
    viewer: bool
    answers_viewer: bool
    institution_member: bool


@dataclass(frozen=True)
class AccessTiers:
    full: bool
    applier: bool
    answer: bool
    base: bool


@dataclass(frozen=True)
class ProtocolActions:
    to_create: bool
    to_update: bool
    to_delete: bool
    to_get: bool
    to_get_all: bool
    to_get_visible: bool
    to_get_my: bool
    to_get_with_answers: bool
    to_apply: bool


def _ids(manager) -> frozenset[int]:
    return frozenset(obj.id for obj in manager.all())


def get_detailed_protocols(protocol_ids: Iterable[int] | None = None) -> list[DetailedProtocol]:
    queryset = Protocol.objects.select_related("creator").prefetch_related(
        "managers",
        "appliers",
        "viewers_user",
        "viewers_classroom",
        "answers_viewers_user",
        "answers_viewers_classroom",
    ).annotate(application_count=Count("applications", distinct=True))
    if protocol_ids is not None:
        queryset = queryset.filter(id__in=list(protocol_ids))
    return [
        DetailedProtocol(
            id=protocol.id,
            enabled=protocol.enabled,
            visibility=protocol.visibility,
            applicability=protocol.applicability,
            answers_visibility=protocol.answers_visibility,
            creator_id=protocol.creator_id,
            creator_institution_id=protocol.creator.institution_id,
            manager_ids=_ids(protocol.managers),
            applier_ids=_ids(protocol.appliers),
            viewer_user_ids=_ids(protocol.viewers_user),
            viewer_classroom_ids=_ids(protocol.viewers_classroom),
            answers_viewer_user_ids=_ids(protocol.answers_viewers_user),
            answers_viewer_classroom_ids=_ids(protocol.answers_viewers_classroom),
            application_count=protocol.application_count,
        )
        for protocol in queryset
    ]


def get_protocol_roles(principal: Principal, protocol: DetailedProtocol) -> ProtocolRoles:
    return ProtocolRoles(
        creator=protocol.creator_id == principal.id,
        manager=principal.id in protocol.manager_ids,
        coordinator=principal.coordinates(protocol.creator_institution_id),
        applier=principal.id in protocol.applier_ids,
        viewer=mode_grants(protocol.visibility, principal)
        or is_listed(principal, protocol.viewer_user_ids, protocol.viewer_classroom_ids),
        answers_viewer=mode_grants(protocol.answers_visibility, principal)
        or is_listed(principal, protocol.answers_viewer_user_ids, protocol.answers_viewer_classroom_ids),
        institution_member=principal.shares_institution(protocol.creator_institution_id),
    )


def get_access_tiers(principal: Principal, roles: ProtocolRoles | None, ignore_filters: bool = False) -> AccessTiers:
    if ignore_filters or roles is None:
        return AccessTiers(full=ignore_filters, applier=ignore_filters, answer=ignore_filters, base=ignore_filters)
    full = roles.creator or roles.manager or roles.coordinator or principal.is_admin
    applier = full or roles.applier
    return AccessTiers(
        full=full,
        applier=applier,
        answer=full,
        base=applier or roles.viewer or roles.answers_viewer,
    )


def get_visible_protocol_fields(principal: Principal, roles: ProtocolRoles | None, ignore_filters: bool = False) -> dict:
    tiers = get_access_tiers(principal, roles, ignore_filters)
    base, full = tiers.base, tiers.full
    # Member lists are only shown inside the creator institution.
    members = tiers.applier and (full or ignore_filters or (roles is not None and roles.institution_member))
    user_fields = {"id": base, "username": base, "institution": {"id": base, "name": base}}
    file_fields = {"id": base, "path": base, "description": base}
    dependency_fields = {"id": base, "type": base, "argument": base, "custom_message": base, "item": base}
    return {
        "id": base,
        "created_at": base,
        "updated_at": base,
        "title": base,
        "description": base,
        "enabled": base,
        "replicable": base,
        "visibility": full,
        "applicability": full,
        "answers_visibility": tiers.answer,
        "creator": user_fields,
        "managers": {"id": members, "username": members},
        "appliers": {"id": members, "username": members},
        "viewers_user": {"id": full, "username": full},
        "viewers_classroom": {"id": full, "name": full},
        "answers_viewers_user": {"id": tiers.answer, "username": tiers.answer},
        "answers_viewers_classroom": {"id": tiers.answer, "name": tiers.answer},
        "pages": {
            "id": base,
            "placement": base,
            "type": base,
            "dependencies": dependency_fields,
            "item_groups": {
                "id": base,
                "placement": base,
                "is_repeatable": base,
                "type": base,
                "dependencies": dependency_fields,
                "table_columns": {"id": base, "text": base, "placement": base},
                "items": {
                    "id": base,
                    "text": base,
                    "description": base,
                    "type": base,
                    "placement": base,
                    "enabled": base,
                    "files": file_fields,
                    "item_validations": {"id": base, "type": base, "argument": base, "custom_message": base},
                    "item_options": {"id": base, "text": base, "placement": base, "files": file_fields},
                },
            },
        },
    }


def get_protocol_actions(principal: Principal, protocol: DetailedProtocol, roles: ProtocolRoles | None = None) -> ProtocolActions:
    roles = roles or get_protocol_roles(principal, protocol)
    tiers = get_access_tiers(principal, roles)
    applies = roles.applier or mode_grants(protocol.applicability, principal)
    return ProtocolActions(
        to_create=principal.role in (Role.ADMIN, Role.COORDINATOR, Role.PUBLISHER),
        to_update=tiers.full,
        to_delete=tiers.full and protocol.application_count == 0,
        to_get=tiers.base,
        to_get_all=principal.is_admin,
        to_get_visible=True,
        to_get_my=principal.role not in (Role.USER, Role.GUEST),
        to_get_with_answers=tiers.full or roles.answers_viewer,
        to_apply=protocol.enabled
        and (tiers.full or (applies and principal.role in APPLIER_ROLES)),
    )


def check_protocol_authorization(principal: Principal, protocol_ids: Iterable[int], action: str) -> list[DetailedProtocol]:
    """Authorization gate for protocol operations; returns the detailed targets."""
    protocol_ids = list(protocol_ids)
    if action == "create":
        if not (principal.is_admin or principal.role in (Role.COORDINATOR, Role.PUBLISHER)):
            raise AuthorizationError()
        return []
    if action == "get_all":
        if not principal.is_admin:
            raise AuthorizationError()
        return []
    if action == "get_my":
        if principal.role in (Role.USER, Role.GUEST):
            raise AuthorizationError()
        return []

    detailed = get_detailed_protocols(protocol_ids)
    if action == "delete":
        require_actions(principal, protocol_ids, detailed, "update", get_protocol_actions)
        if any(protocol.application_count for protocol in detailed):
            raise ConflictError("Protocols with applications cannot be deleted.")
        return detailed
    require_actions(principal, protocol_ids, detailed, action, get_protocol_actions)
    return detailed
