from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from django.db.models import Count

from picce_app.core.exceptions import AuthorizationError
from picce_app.core.permissions import APPLIER_ROLES, Principal, Role, is_listed, mode_grants, require_actions

from .models import Application, ApplicationAnswer


def _ids(manager) -> frozenset[int]:
    return frozenset(obj.id for obj in manager.all())


# Applications


@dataclass(frozen=True)
class DetailedApplication:
    id: int
    protocol_id: int
    protocol_creator_id: int
    protocol_manager_ids: frozenset[int]
    applier_id: int
    applier_institution_id: int | None
    visibility: str
    answers_visibility: str
    viewer_user_ids: frozenset[int]
    viewer_classroom_ids: frozenset[int]
    answers_viewer_user_ids: frozenset[int]
    answers_viewer_classroom_ids: frozenset[int]
    answer_count: int


@dataclass(frozen=True)
class ApplicationRoles:
    applier: bool
    protocol_creator: bool
    protocol_manager: bool
    coordinator: bool
    institution_member: bool
    viewer: bool
    answers_viewer: bool


@dataclass(frozen=True)
class ApplicationActions:
    to_create: bool
    to_update: bool
    to_delete: bool
    to_get: bool
    to_get_all: bool
    to_get_visible: bool
    to_get_my: bool
    to_get_with_answers: bool


def get_detailed_applications(application_ids: Iterable[int] | None = None) -> list[DetailedApplication]:
    queryset = Application.objects.select_related("applier", "protocol").prefetch_related(
        "protocol__managers",
        "viewers_user",
        "viewers_classroom",
        "answers_viewers_user",
        "answers_viewers_classroom",
    ).annotate(answer_count=Count("answers", distinct=True))
    if application_ids is not None:
        queryset = queryset.filter(id__in=list(application_ids))
    return [
        DetailedApplication(
            id=application.id,
            protocol_id=application.protocol_id,
            protocol_creator_id=application.protocol.creator_id,
            protocol_manager_ids=_ids(application.protocol.managers),
            applier_id=application.applier_id,
            applier_institution_id=application.applier.institution_id,
            visibility=application.visibility,
            answers_visibility=application.answers_visibility,
            viewer_user_ids=_ids(application.viewers_user),
            viewer_classroom_ids=_ids(application.viewers_classroom),
            answers_viewer_user_ids=_ids(application.answers_viewers_user),
            answers_viewer_classroom_ids=_ids(application.answers_viewers_classroom),
            answer_count=application.answer_count,
        )
        for application in queryset
    ]


def get_application_roles(principal: Principal, application: DetailedApplication) -> ApplicationRoles:
    return ApplicationRoles(
        applier=application.applier_id == principal.id,
        protocol_creator=application.protocol_creator_id == principal.id,
        protocol_manager=principal.id in application.protocol_manager_ids,
        coordinator=principal.coordinates(application.applier_institution_id),
        institution_member=principal.shares_institution(application.applier_institution_id),
        viewer=mode_grants(application.visibility, principal)
        or is_listed(principal, application.viewer_user_ids, application.viewer_classroom_ids),
        answers_viewer=mode_grants(application.answers_visibility, principal)
        or is_listed(principal, application.answers_viewer_user_ids, application.answers_viewer_classroom_ids),
    )


def get_visible_application_fields(principal: Principal, roles: ApplicationRoles | None, ignore_filters: bool = False) -> dict:
    if ignore_filters or roles is None:
        full = base = ignore_filters
    else:
        full = roles.applier or roles.protocol_creator or roles.protocol_manager or roles.coordinator or principal.is_admin
        base = full or roles.viewer or roles.answers_viewer
    return {
        "id": base,
        "created_at": base,
        "updated_at": base,
        "visibility": full,
        "answers_visibility": full,
        "protocol": {"id": base, "title": base, "description": base},
        "applier": {"id": base, "username": base, "institution": {"id": base, "name": base}},
        "viewers_user": {"id": full, "username": full},
        "viewers_classroom": {"id": full, "name": full},
        "answers_viewers_user": {"id": full, "username": full},
        "answers_viewers_classroom": {"id": full, "name": full},
    }


def get_application_actions(
    principal: Principal, application: DetailedApplication, roles: ApplicationRoles | None = None
) -> ApplicationActions:
    roles = roles or get_application_roles(principal, application)
    owns = roles.applier or roles.coordinator or principal.is_admin
    full = owns or roles.protocol_creator or roles.protocol_manager
    return ApplicationActions(
        to_create=principal.is_admin or principal.role in APPLIER_ROLES,
        to_update=owns,
        to_delete=owns,
        to_get=full or roles.viewer or roles.answers_viewer,
        to_get_all=principal.is_admin,
        to_get_visible=True,
        to_get_my=principal.role not in (Role.USER, Role.GUEST),
        to_get_with_answers=full or roles.answers_viewer,
    )


def check_application_authorization(
    principal: Principal, application_ids: Iterable[int], action: str
) -> list[DetailedApplication]:
    application_ids = list(application_ids)
    if action == "create":
        # Permission to apply the chosen protocol is checked by the protocol gate.
        if not (principal.is_admin or principal.role in APPLIER_ROLES):
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
    detailed = get_detailed_applications(application_ids)
    require_actions(principal, application_ids, detailed, action, get_application_actions)
    return detailed


# Application answers


@dataclass(frozen=True)
class DetailedApplicationAnswer:
    id: int
    user_id: int
    application: DetailedApplication
    protocol_creator_institution_id: int | None


@dataclass(frozen=True)
class ApplicationAnswerRoles:
    answerer: bool
    application_applier: bool
    application_coordinator: bool
    application_institution_member: bool
    protocol_coordinator: bool
    protocol_creator: bool
    protocol_institution_member: bool
    protocol_manager: bool
    viewer: bool


@dataclass(frozen=True)
class ApplicationAnswerActions:
    to_update: bool
    to_delete: bool
    to_get: bool
    to_approve: bool
    to_get_all: bool
    to_get_my: bool


def get_detailed_application_answers(answer_ids: Iterable[int]) -> list[DetailedApplicationAnswer]:
    answers = list(
        ApplicationAnswer.objects.filter(id__in=list(answer_ids)).select_related(
            "application__protocol__creator"
        )
    )
    applications = {
        application.id: application
        for application in get_detailed_applications({answer.application_id for answer in answers})
    }
    return [
        DetailedApplicationAnswer(
            id=answer.id,
            user_id=answer.user_id,
            application=applications[answer.application_id],
            protocol_creator_institution_id=answer.application.protocol.creator.institution_id,
        )
        for answer in answers
    ]


def get_application_answer_roles(principal: Principal, answer: DetailedApplicationAnswer) -> ApplicationAnswerRoles:
    application = answer.application
    return ApplicationAnswerRoles(
        answerer=answer.user_id == principal.id,
        application_applier=application.applier_id == principal.id,
        application_coordinator=principal.coordinates(application.applier_institution_id),
        application_institution_member=principal.shares_institution(application.applier_institution_id),
        protocol_coordinator=principal.coordinates(answer.protocol_creator_institution_id),
        protocol_creator=application.protocol_creator_id == principal.id,
        protocol_institution_member=principal.shares_institution(answer.protocol_creator_institution_id),
        protocol_manager=principal.id in application.protocol_manager_ids,
        viewer=mode_grants(application.answers_visibility, principal)
        or is_listed(principal, application.answers_viewer_user_ids, application.answers_viewer_classroom_ids),
    )


def _reviews(principal: Principal, roles: ApplicationAnswerRoles) -> bool:
    return (
        roles.application_applier
        or roles.protocol_creator
        or roles.protocol_manager
        or roles.protocol_coordinator
        or roles.application_coordinator
        or principal.is_admin
    )


def _reads(principal: Principal, roles: ApplicationAnswerRoles) -> bool:
    return (
        _reviews(principal, roles)
        or roles.answerer
        or roles.protocol_institution_member
        or roles.application_institution_member
        or roles.viewer
    )


def get_visible_answer_fields(principal: Principal, roles: ApplicationAnswerRoles | None, ignore_filters: bool = False) -> dict:
    if ignore_filters or roles is None:
        full = base = ignore_filters
    else:
        full = _reviews(principal, roles)
        base = _reads(principal, roles)
    return {
        "id": base,
        "created_at": base,
        "updated_at": base,
        "date": base,
        "approved": full,
        "application": base,
        "user": {"id": base, "username": base, "institution": {"id": base, "name": base}},
        "address": {"id": base, "city": base, "state": base, "country": base},
        "item_answer_groups": {
            "id": base,
            "item_answers": {
                "id": base,
                "text": base,
                "item": base,
                "files": {"id": base, "path": base, "description": base},
            },
            "option_answers": {"id": base, "text": base, "item": base, "option": base},
            "table_answers": {"id": base, "text": base, "item": base, "column": base},
        },
    }


def get_application_answer_actions(
    principal: Principal, answer: DetailedApplicationAnswer, roles: ApplicationAnswerRoles | None = None
) -> ApplicationAnswerActions:
    roles = roles or get_application_answer_roles(principal, answer)
    reviewer = _reviews(principal, roles)
    return ApplicationAnswerActions(
        to_update=roles.answerer or principal.is_admin,
        to_delete=roles.answerer or reviewer,
        to_get=_reads(principal, roles),
        to_approve=reviewer,
        to_get_all=principal.is_admin,
        to_get_my=True,
    )


def check_application_answer_authorization(
    principal: Principal, answer_ids: Iterable[int], action: str, application_ids: Iterable[int] = ()
) -> list[DetailedApplicationAnswer]:
    answer_ids = list(answer_ids)
    if action == "create":
        # Anyone who can read the application may answer it.
        check_application_authorization(principal, application_ids, "get")
        return []
    if action == "get_all":
        if not principal.is_admin:
            raise AuthorizationError()
        return []
    if action == "get_my":
        return []
    detailed = get_detailed_application_answers(answer_ids)
    require_actions(principal, answer_ids, detailed, action, get_application_answer_actions)
    return detailed
