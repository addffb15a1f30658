"""Build read responses: projected fields plus the permitted actions."""

from __future__ import annotations

from dataclasses import asdict
from typing import Iterable

from picce_app.applications.models import Application, ApplicationAnswer
from picce_app.applications.permissions import (
    get_application_actions,
    get_application_answer_actions,
    get_application_answer_roles,
    get_application_roles,
    get_detailed_application_answers,
    get_detailed_applications,
    get_visible_answer_fields,
    get_visible_application_fields,
)
from picce_app.core.exceptions import NotFoundError
from picce_app.core.fields_filter import fields_filter
from picce_app.core.models import User
from picce_app.core.permissions import (
    Principal,
    get_detailed_users,
    get_peer_user_actions,
    get_peer_user_roles,
    get_visible_user_fields,
)
from picce_app.protocols.models import Protocol
from picce_app.protocols.permissions import (
    get_detailed_protocols,
    get_protocol_actions,
    get_protocol_roles,
    get_visible_protocol_fields,
)

from .serializers import ApplicationAnswerSerializer, ApplicationSerializer, ProtocolSerializer, UserSerializer

PROTOCOL_PREFETCH = (
    "creator__institution",
    "managers__institution",
    "appliers__institution",
    "viewers_user__institution",
    "viewers_classroom",
    "answers_viewers_user__institution",
    "answers_viewers_classroom",
    "pages__dependencies",
    "pages__item_groups__dependencies",
    "pages__item_groups__table_columns",
    "pages__item_groups__items__files",
    "pages__item_groups__items__item_validations",
    "pages__item_groups__items__item_options__files",
)

APPLICATION_PREFETCH = (
    "applier__institution",
    "viewers_user__institution",
    "viewers_classroom",
    "answers_viewers_user__institution",
    "answers_viewers_classroom",
)

ANSWER_PREFETCH = (
    "item_answer_groups__item_answers__files",
    "item_answer_groups__option_answers",
    "item_answer_groups__table_answers",
)


def protocols_queryset():
    return Protocol.objects.prefetch_related(*PROTOCOL_PREFETCH)


def applications_queryset():
    return Application.objects.select_related("protocol").prefetch_related(*APPLICATION_PREFETCH)


def answers_queryset():
    return ApplicationAnswer.objects.select_related("user__institution", "address").prefetch_related(*ANSWER_PREFETCH)


def _by_id(objects) -> dict:
    return {obj.id: obj for obj in objects}


def present_answers(principal: Principal, answers: Iterable[ApplicationAnswer]) -> list[dict]:
    answers = list(answers)
    detailed = _by_id(get_detailed_application_answers([answer.id for answer in answers]))
    presented = []
    for answer in answers:
        roles = get_application_answer_roles(principal, detailed[answer.id])
        actions = get_application_answer_actions(principal, detailed[answer.id], roles)
        if not (actions.to_get or principal.is_admin):
            continue
        body = fields_filter(ApplicationAnswerSerializer(answer).data, get_visible_answer_fields(principal, roles))
        body["actions"] = asdict(actions)
        presented.append(body)
    return presented


def present_applications(principal: Principal, applications: Iterable[Application], with_answers: bool = False) -> list[dict]:
    """Project each readable application; unreadable ones are left out."""
    applications = list(applications)
    detailed = _by_id(get_detailed_applications([application.id for application in applications]))
    presented = []
    for application in applications:
        roles = get_application_roles(principal, detailed[application.id])
        actions = get_application_actions(principal, detailed[application.id], roles)
        if not (actions.to_get or principal.is_admin):
            continue
        body = fields_filter(ApplicationSerializer(application).data, get_visible_application_fields(principal, roles))
        body["actions"] = asdict(actions)
        if with_answers and (actions.to_get_with_answers or principal.is_admin):
            body["answers"] = present_answers(principal, answers_queryset().filter(application=application))
        presented.append(body)
    return presented


def present_protocols(principal: Principal, protocols: Iterable[Protocol], with_answers: bool = False) -> list[dict]:
    """Project each readable protocol and embed its readable applications."""
    protocols = list(protocols)
    detailed = _by_id(get_detailed_protocols([protocol.id for protocol in protocols]))
    presented = []
    for protocol in protocols:
        roles = get_protocol_roles(principal, detailed[protocol.id])
        actions = get_protocol_actions(principal, detailed[protocol.id], roles)
        if not (actions.to_get or principal.is_admin):
            continue
        body = fields_filter(ProtocolSerializer(protocol).data, get_visible_protocol_fields(principal, roles))
        body["actions"] = asdict(actions)
        body["applications"] = present_applications(
            principal, applications_queryset().filter(protocol=protocol), with_answers=with_answers
        )
        presented.append(body)
    return presented


def _single(presented: list[dict], entity_id: int) -> dict:
    if not presented:
        raise NotFoundError("The requested entity was not found.", {"ids": [entity_id]})
    return presented[0]


def present_protocol(principal: Principal, protocol_id: int, with_answers: bool = False) -> dict:
    return _single(present_protocols(principal, protocols_queryset().filter(id=protocol_id), with_answers), protocol_id)


def present_written_protocol(principal: Principal, protocol_id: int) -> dict:
    """Projection returned after a committed write.

    A writer who gave up their own read access in that write, for instance a
    manager removing themselves, gets the id and the actions they now hold.
    """
    presented = present_protocols(principal, protocols_queryset().filter(id=protocol_id))
    if presented:
        return presented[0]
    detailed = get_detailed_protocols([protocol_id])[0]
    return {"id": protocol_id, "actions": asdict(get_protocol_actions(principal, detailed))}


def present_application(principal: Principal, application_id: int, with_answers: bool = False) -> dict:
    presented = present_applications(principal, applications_queryset().filter(id=application_id), with_answers)
    return _single(presented, application_id)


def present_answer(principal: Principal, answer_id: int) -> dict:
    return _single(present_answers(principal, answers_queryset().filter(id=answer_id)), answer_id)


def present_user(principal: Principal, user_id: int) -> dict:
    user = User.objects.select_related("institution").prefetch_related("classrooms").get(id=user_id)
    detailed = get_detailed_users([user_id])[0]
    roles = get_peer_user_roles(principal, detailed)
    body = fields_filter(UserSerializer(user).data, get_visible_user_fields(principal, roles))
    body["actions"] = asdict(get_peer_user_actions(principal, detailed, roles))
    return body
