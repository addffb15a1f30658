import datetime

import pytest
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone

from picce_app.applications.models import Application, ApplicationAnswer, ItemAnswer, ItemAnswerGroup
from picce_app.applications.upsert import (
    approve_application_answer,
    create_application_answer,
    delete_application_answer,
    update_application_answer,
)
from picce_app.core.exceptions import DanglingReferenceError, NotFoundError
from picce_app.core.models import User
from picce_app.core.users import delete_user
from picce_app.protocols.models import File, Item, Protocol
from picce_app.protocols.upsert import create_protocol


def protocol_payload():
    return {
        "title": "Diary",
        "description": "",
        "enabled": True,
        "replicable": False,
        "visibility": "PUBLIC",
        "applicability": "PUBLIC",
        "answers_visibility": "RESTRICT",
        "pages": [
            {
                "placement": 1,
                "type": "ITEMS",
                "dependencies": [],
                "item_groups": [
                    {
                        "placement": 1,
                        "type": "ONE_DIMENSIONAL",
                        "is_repeatable": True,
                        "table_columns": [],
                        "dependencies": [],
                        "items": [
                            {
                                "temp_id": 1,
                                "text": "Photo",
                                "type": "UPLOAD",
                                "placement": 1,
                                "enabled": True,
                                "files": [],
                                "item_options": [],
                                "item_validations": [],
                            }
                        ],
                    }
                ],
            }
        ],
    }


@pytest.mark.django_db
class TestApplicationAnswerUpsert:
    def setup_data(self):
        publisher = User.objects.create_user(username="publisher", password="x", role=User.Role.PUBLISHER)
        respondent = User.objects.create_user(username="respondent", password="x", role=User.Role.USER)
        protocol = create_protocol(publisher, protocol_payload())
        application = Application.objects.create(protocol=protocol, applier=publisher, visibility="PUBLIC")
        item = Item.objects.get(group__page__protocol=protocol)
        return application, respondent, item

    def payload(self, item, groups=None):
        return {
            "date": timezone.make_aware(datetime.datetime(2024, 5, 1, 10, 0)),
            "address": None,
            "item_answer_groups": groups
            if groups is not None
            else [{"item_answers": [{"item": item.id, "text": "first", "files": []}]}],
        }

    def test_create_and_update_prunes_groups(self):
        application, respondent, item = self.setup_data()
        groups = [
            {"item_answers": [{"item": item.id, "text": "first", "files": []}]},
            {"item_answers": [{"item": item.id, "text": "second", "files": []}]},
        ]
        answer = create_application_answer(respondent, application, self.payload(item, groups))
        assert answer.item_answer_groups.count() == 2
        assert not answer.approved

        kept = answer.item_answer_groups.first()
        kept_answer = kept.item_answers.get()
        update_application_answer(
            answer,
            self.payload(item, [{"id": kept.id, "item_answers": [{"id": kept_answer.id, "item": item.id, "text": "edited"}]}]),
        )
        assert list(ItemAnswerGroup.objects.filter(application_answer=answer).values_list("id", flat=True)) == [kept.id]
        assert ItemAnswer.objects.get(id=kept_answer.id).text == "edited"

    def test_groups_of_other_answers_are_not_found(self):
        application, respondent, item = self.setup_data()
        first = create_application_answer(respondent, application, self.payload(item))
        second = create_application_answer(respondent, application, self.payload(item))
        foreign = first.item_answer_groups.get()
        with pytest.raises(NotFoundError):
            update_application_answer(second, self.payload(item, [{"id": foreign.id, "item_answers": []}]))
        assert first.item_answer_groups.filter(id=foreign.id).exists()

    def test_answer_files_claim_uploads(self, media_root, django_capture_on_commit_callbacks):
        application, respondent, item = self.setup_data()
        path = default_storage.save("uploads/photo.jpg", ContentFile(b"jpg"))
        groups = [{"item_answers": [{"item": item.id, "text": "", "files": [{"description": "me"}]}]}]
        answer = create_application_answer(
            respondent,
            application,
            self.payload(item, groups),
            {("item_answer_groups", 0, "item_answers", 0, "files", 0): path},
        )
        assert File.objects.get(item_answer__group__application_answer=answer).path == path

        with django_capture_on_commit_callbacks(execute=True):
            delete_application_answer(answer)
        assert not ApplicationAnswer.objects.exists()
        assert not default_storage.exists(path)

    def test_missing_upload_rolls_back(self):
        application, respondent, item = self.setup_data()
        groups = [{"item_answers": [{"item": item.id, "text": "", "files": [{"description": "me"}]}]}]
        with pytest.raises(DanglingReferenceError):
            create_application_answer(respondent, application, self.payload(item, groups))
        assert not ApplicationAnswer.objects.exists()
        assert not ItemAnswer.objects.exists()

    def test_approve(self):
        application, respondent, item = self.setup_data()
        answer = create_application_answer(respondent, application, self.payload(item))
        approve_application_answer(answer)
        answer.refresh_from_db()
        assert answer.approved

    def test_protocol_deletion_is_protected_by_applications(self):
        from django.db.models import ProtectedError

        application, _, _ = self.setup_data()
        with pytest.raises(ProtectedError):
            Protocol.objects.filter(id=application.protocol_id).delete()

    def answer_with_photo(self, application, respondent, item, name):
        path = default_storage.save(f"uploads/{name}", ContentFile(b"jpg"))
        groups = [{"item_answers": [{"item": item.id, "text": "", "files": [{"description": "me"}]}]}]
        create_application_answer(
            respondent,
            application,
            self.payload(item, groups),
            {("item_answer_groups", 0, "item_answers", 0, "files", 0): path},
        )
        return path

    def test_deleting_respondent_removes_answer_blobs(self, media_root, django_capture_on_commit_callbacks):
        application, respondent, item = self.setup_data()
        path = self.answer_with_photo(application, respondent, item, "respondent.jpg")

        with django_capture_on_commit_callbacks(execute=True):
            delete_user(respondent)
        assert not ApplicationAnswer.objects.exists()
        assert not default_storage.exists(path)

    def test_deleting_applier_removes_blobs_of_their_applications(self, media_root, django_capture_on_commit_callbacks):
        application, respondent, item = self.setup_data()
        applier = User.objects.create_user(username="applier", password="x", role=User.Role.APPLIER)
        Application.objects.filter(id=application.id).update(applier=applier)
        path = self.answer_with_photo(application, respondent, item, "applied.jpg")

        with django_capture_on_commit_callbacks(execute=True):
            delete_user(applier)
        assert not Application.objects.exists()
        assert not default_storage.exists(path)
        assert User.objects.filter(id=respondent.id).exists()
