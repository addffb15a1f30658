from __future__ import annotations

import logging
from typing import Mapping

from django.db import transaction

from picce_app.core.files import UploadPool, discard_blobs_on_commit
from picce_app.core.reconcile import sync_children, upsert_child
from picce_app.core.validators import validate_classrooms, validate_viewers
from picce_app.protocols.models import File

from .models import Application, ApplicationAnswer, ItemAnswer, ItemAnswerGroup, OptionAnswer, TableAnswer
from .validators import validate_address, validate_answers

logger = logging.getLogger(__name__)

APPLICATION_FIELDS = ("visibility", "answers_visibility")
APPLICATION_RELATIONS = ("viewers_user", "viewers_classroom", "answers_viewers_user", "answers_viewers_classroom")


def answer_file_paths(**lookup) -> set[str]:
    prefixed = {f"item_answer__group__application_answer__{key}": value for key, value in lookup.items()}
    return set(File.objects.filter(**prefixed).values_list("path", flat=True))


class ApplicationAnswerUpsert:
    """Create-or-update-and-prune of one answer tree.

    Item answer files are matched to uploads addressed as
    ``item_answer_groups[g][item_answers][a][files][f]``.
    """

    def __init__(self, data: Mapping, uploads: Mapping | None = None):
        self.data = data
        self.uploads = UploadPool(uploads)

    def create(self, user, application: Application) -> ApplicationAnswer:
        with transaction.atomic():
            answer = ApplicationAnswer.objects.create(
                application=application,
                user=user,
                date=self.data["date"],
                address_id=self.data.get("address"),
                approved=False,
            )
            self._apply(answer)
        return answer

    def update(self, answer: ApplicationAnswer) -> ApplicationAnswer:
        with transaction.atomic():
            before = answer_file_paths(id=answer.id)
            answer.date = self.data.get("date", answer.date)
            answer.address_id = self.data.get("address")
            answer.save()
            self._apply(answer)
            discard_blobs_on_commit(before - answer_file_paths(id=answer.id))
        return answer

    def _apply(self, answer: ApplicationAnswer) -> None:
        for index, group_data in sync_children(answer.item_answer_groups.all(), self.data["item_answer_groups"]):
            group = upsert_child(ItemAnswerGroup, {"application_answer": answer}, group_data)
            coordinates = ("item_answer_groups", index)
            for answer_index, item_answer in sync_children(group.item_answers.all(), group_data.get("item_answers", [])):
                stored = upsert_child(
                    ItemAnswer, {"group": group}, item_answer, text=item_answer.get("text", ""), item_id=item_answer["item"]
                )
                self._sync_files(stored, item_answer.get("files", []), (*coordinates, "item_answers", answer_index))
            for _, option_answer in sync_children(group.option_answers.all(), group_data.get("option_answers", [])):
                upsert_child(
                    OptionAnswer,
                    {"group": group},
                    option_answer,
                    text=option_answer.get("text", ""),
                    item_id=option_answer["item"],
                    option_id=option_answer["option"],
                )
            for _, table_answer in sync_children(group.table_answers.all(), group_data.get("table_answers", [])):
                upsert_child(
                    TableAnswer,
                    {"group": group},
                    table_answer,
                    text=table_answer.get("text", ""),
                    item_id=table_answer["item"],
                    column_id=table_answer["column"],
                )
        self.uploads.ensure_consumed()

    def _sync_files(self, item_answer: ItemAnswer, files: list, coordinates: tuple) -> None:
        for index, file_data in sync_children(item_answer.files.all(), files):
            description = file_data.get("description", "")
            if file_data.get("id"):
                upsert_child(File, {"item_answer": item_answer}, file_data, description=description)
            else:
                path = self.uploads.claim((*coordinates, "files", index))
                File.objects.create(path=path, description=description, item_answer=item_answer)


def create_application_answer(user, application: Application, data: Mapping, uploads: Mapping | None = None) -> ApplicationAnswer:
    validate_address(data.get("address"))
    validate_answers(application.protocol_id, data["item_answer_groups"])
    answer = ApplicationAnswerUpsert(data, uploads).create(user, application)
    logger.info("Answer %s submitted to application %s by user %s", answer.id, application.id, user.id)
    return answer


def update_application_answer(answer: ApplicationAnswer, data: Mapping, uploads: Mapping | None = None) -> ApplicationAnswer:
    validate_address(data.get("address"))
    validate_answers(answer.application.protocol_id, data["item_answer_groups"])
    answer = ApplicationAnswerUpsert(data, uploads).update(answer)
    logger.info("Answer %s updated", answer.id)
    return answer


def approve_application_answer(answer: ApplicationAnswer) -> ApplicationAnswer:
    answer.approved = True
    answer.save(update_fields=["approved", "updated_at"])
    logger.info("Answer %s approved", answer.id)
    return answer


def delete_application_answer(answer: ApplicationAnswer) -> None:
    answer_id = answer.id
    with transaction.atomic():
        paths = answer_file_paths(id=answer_id)
        answer.delete()
        discard_blobs_on_commit(paths)
    logger.info("Answer %s deleted", answer_id)


def _validate_application_grants(data: Mapping) -> None:
    validate_viewers([*data.get("viewers_user", []), *data.get("answers_viewers_user", [])])
    validate_classrooms([*data.get("viewers_classroom", []), *data.get("answers_viewers_classroom", [])])


def _set_application_grants(application: Application, data: Mapping) -> None:
    for name in APPLICATION_RELATIONS:
        getattr(application, name).set(data.get(name, []))


def create_application(applier, data: Mapping) -> Application:
    _validate_application_grants(data)
    with transaction.atomic():
        application = Application.objects.create(
            protocol_id=data["protocol"],
            applier=applier,
            **{name: data[name] for name in APPLICATION_FIELDS},
        )
        _set_application_grants(application, data)
    logger.info("Application %s of protocol %s created by user %s", application.id, data["protocol"], applier.id)
    return application


def update_application(application: Application, data: Mapping) -> Application:
    _validate_application_grants(data)
    with transaction.atomic():
        for name in APPLICATION_FIELDS:
            setattr(application, name, data[name])
        application.save()
        _set_application_grants(application, data)
    logger.info("Application %s updated", application.id)
    return application


def delete_application(application: Application) -> None:
    application_id = application.id
    with transaction.atomic():
        paths = answer_file_paths(application_id=application_id)
        application.delete()
        discard_blobs_on_commit(paths)
    logger.info("Application %s deleted", application_id)
