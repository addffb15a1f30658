import json

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile

from picce_app.core.models import Institution
from picce_app.protocols.models import File, Item, ItemOption, Protocol

User = get_user_model()
TEST_PASSWORD = "test-pass-123"


def radio_protocol(**overrides):
    payload = {
        "title": "Screen time",
        "description": "Weekly habits",
        "visibility": "RESTRICT",
        "applicability": "RESTRICT",
        "answers_visibility": "RESTRICT",
        "pages": [
            {
                "placement": 1,
                "item_groups": [
                    {
                        "placement": 1,
                        "type": "ONE_DIMENSIONAL",
                        "items": [
                            {
                                "temp_id": 7,
                                "text": "Do you own a phone?",
                                "type": "RADIO",
                                "placement": 1,
                                "item_options": [{"text": "A", "placement": 1}, {"text": "B", "placement": 2}],
                            }
                        ],
                    }
                ],
            }
        ],
    }
    payload.update(overrides)
    return payload


@pytest.mark.django_db
class TestProtocolAPI:
    def get_auth_header(self, client, username: str, password: str) -> dict:
        resp = client.post(
            "/api/token",
            data=json.dumps({"username": username, "password": password}),
            content_type="application/json",
        )
        assert resp.status_code == 200, resp.content
        access = resp.json()["access"]
        return {"HTTP_AUTHORIZATION": f"Bearer {access}"}

    def setup_users(self):
        school = Institution.objects.create(name="School")
        User.objects.create_user(
            username="publisher", password=TEST_PASSWORD, role=User.Role.PUBLISHER, institution=school
        )
        User.objects.create_user(username="guest", password=TEST_PASSWORD, role=User.Role.GUEST)
        User.objects.create_user(username="student", password=TEST_PASSWORD, role=User.Role.USER)

    def post_json(self, client, url, payload, hdrs):
        return client.post(url, data=json.dumps(payload), content_type="application/json", **hdrs)

    def put_json(self, client, url, payload, hdrs):
        return client.put(url, data=json.dumps(payload), content_type="application/json", **hdrs)

    def test_create_prune_and_dangling_dependency(self, client):
        self.setup_users()
        hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)

        resp = self.post_json(client, "/api/protocols/", radio_protocol(), hdrs)
        assert resp.status_code == 201, resp.content
        body = resp.json()
        assert body["message"] == "Protocol created."
        protocol = body["data"]
        assert protocol["actions"]["to_update"] is True
        page = protocol["pages"][0]
        group = page["item_groups"][0]
        item = group["items"][0]
        options = item["item_options"]
        assert [option["text"] for option in options] == ["A", "B"]
        assert all(option["id"] for option in options)

        update = radio_protocol()
        update["pages"][0]["id"] = page["id"]
        update["pages"][0]["item_groups"][0]["id"] = group["id"]
        update_item = update["pages"][0]["item_groups"][0]["items"][0]
        update_item["id"] = item["id"]
        update_item["item_options"] = [
            {"id": options[0]["id"], "text": "A", "placement": 1},
            {"text": "C", "placement": 2},
        ]
        resp = self.put_json(client, f"/api/protocols/{protocol['id']}/", update, hdrs)
        assert resp.status_code == 200, resp.content
        texts = [option["text"] for option in resp.json()["data"]["pages"][0]["item_groups"][0]["items"][0]["item_options"]]
        assert texts == ["A", "C"]
        assert not ItemOption.objects.filter(id=options[1]["id"]).exists()

        update["pages"][0]["dependencies"] = [{"type": "OPTION_SELECTED", "argument": "A", "item_temp_id": 99}]
        resp = self.put_json(client, f"/api/protocols/{protocol['id']}/", update, hdrs)
        assert resp.status_code == 400
        error = resp.json()
        assert error["details"]["code"] == "reference_error"
        assert error["message"][0].isupper()
        assert ItemOption.objects.filter(item_id=item["id"]).count() == 2

    def test_missing_upload_rolls_back_everything(self, client, media_root):
        self.setup_users()
        hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)
        payload = radio_protocol()
        payload["pages"][0]["item_groups"][0]["items"][0]["files"] = [{"description": "one"}, {"description": "two"}]
        resp = client.post(
            "/api/protocols/",
            data={
                "payload": json.dumps(payload),
                "pages[0][item_groups][0][items][0][files][0]": SimpleUploadedFile("one.txt", b"one"),
            },
            **hdrs,
        )
        assert resp.status_code == 400, resp.content
        assert resp.json()["details"]["code"] == "reference_error"
        assert not Protocol.objects.exists()
        assert not Item.objects.exists()
        assert not File.objects.exists()
        uploads = media_root / "uploads"
        assert not uploads.exists() or not any(uploads.iterdir())

    def test_multipart_create_attaches_files(self, client, media_root):
        self.setup_users()
        hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)
        payload = radio_protocol()
        item = payload["pages"][0]["item_groups"][0]["items"][0]
        item["item_options"][1]["files"] = [{"description": "icon"}]
        resp = client.post(
            "/api/protocols/",
            data={
                "payload": json.dumps(payload),
                "pages[0][item_groups][0][items][0][item_options][1][files][0]": SimpleUploadedFile("b.png", b"png"),
            },
            **hdrs,
        )
        assert resp.status_code == 201, resp.content
        option = resp.json()["data"]["pages"][0]["item_groups"][0]["items"][0]["item_options"][1]
        assert option["files"][0]["description"] == "icon"
        assert (media_root / option["files"][0]["path"]).exists()

    def test_restricted_protocol_is_invisible_to_guests(self, client):
        self.setup_users()
        publisher_hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)
        protocol_id = self.post_json(client, "/api/protocols/", radio_protocol(), publisher_hdrs).json()["data"]["id"]

        guest_hdrs = self.get_auth_header(client, "guest", TEST_PASSWORD)
        resp = client.get("/api/protocols/", **guest_hdrs)
        assert resp.status_code == 200
        assert resp.json()["data"] == []
        resp = client.get(f"/api/protocols/{protocol_id}/", **guest_hdrs)
        assert resp.status_code == 404
        assert resp.json()["details"]["code"] == "not_found"

    def test_viewer_gets_base_fields_and_actions(self, client):
        self.setup_users()
        publisher_hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)
        student = User.objects.get(username="student")
        payload = radio_protocol(viewers_user=[student.id])
        protocol_id = self.post_json(client, "/api/protocols/", payload, publisher_hdrs).json()["data"]["id"]

        resp = client.get(f"/api/protocols/{protocol_id}/", **self.get_auth_header(client, "student", TEST_PASSWORD))
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["title"] == "Screen time"
        assert "visibility" not in data
        assert "viewers_user" not in data
        assert data["actions"]["to_get"] is True
        assert data["actions"]["to_update"] is False

        resp = self.put_json(
            client,
            f"/api/protocols/{protocol_id}/",
            radio_protocol(),
            self.get_auth_header(client, "student", TEST_PASSWORD),
        )
        assert resp.status_code == 403
        assert resp.json()["details"]["code"] == "authorization_error"

    def test_semantic_errors_are_400(self, client):
        self.setup_users()
        hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)
        payload = radio_protocol()
        payload["pages"][0]["item_groups"][0]["items"][0]["item_options"].pop()
        resp = self.post_json(client, "/api/protocols/", payload, hdrs)
        assert resp.status_code == 400
        assert resp.json()["details"]["code"] == "semantic_error"

    def test_unknown_fields_are_rejected(self, client):
        self.setup_users()
        hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)
        resp = self.post_json(client, "/api/protocols/", radio_protocol(colour="blue"), hdrs)
        assert resp.status_code == 400
        assert resp.json()["details"]["code"] == "validation_error"

    def test_users_cannot_create_protocols(self, client):
        self.setup_users()
        hdrs = self.get_auth_header(client, "student", TEST_PASSWORD)
        resp = self.post_json(client, "/api/protocols/", radio_protocol(), hdrs)
        assert resp.status_code == 403

    def test_my_and_delete(self, client):
        self.setup_users()
        hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)
        protocol_id = self.post_json(client, "/api/protocols/", radio_protocol(), hdrs).json()["data"]["id"]
        resp = client.get("/api/protocols/my/", **hdrs)
        assert [protocol["id"] for protocol in resp.json()["data"]] == [protocol_id]

        resp = client.get("/api/protocols/all/", **hdrs)
        assert resp.status_code == 403

        resp = client.delete(f"/api/protocols/{protocol_id}/", **hdrs)
        assert resp.status_code == 200
        assert not Protocol.objects.exists()

    def test_manager_removing_themselves_gets_committed_reply(self, client):
        self.setup_users()
        school = Institution.objects.get(name="School")
        manager = User.objects.create_user(
            username="manager", password=TEST_PASSWORD, role=User.Role.PUBLISHER, institution=school
        )
        publisher_hdrs = self.get_auth_header(client, "publisher", TEST_PASSWORD)
        protocol_id = self.post_json(
            client, "/api/protocols/", radio_protocol(managers=[manager.id]), publisher_hdrs
        ).json()["data"]["id"]

        manager_hdrs = self.get_auth_header(client, "manager", TEST_PASSWORD)
        current = client.get(f"/api/protocols/{protocol_id}/", **manager_hdrs).json()["data"]
        update = radio_protocol(managers=[])
        page = current["pages"][0]
        group = page["item_groups"][0]
        item = group["items"][0]
        update["pages"][0]["id"] = page["id"]
        update["pages"][0]["item_groups"][0]["id"] = group["id"]
        update_item = update["pages"][0]["item_groups"][0]["items"][0]
        update_item["id"] = item["id"]
        update_item["item_options"] = [
            {"id": option["id"], "text": option["text"], "placement": option["placement"]}
            for option in item["item_options"]
        ]

        resp = self.put_json(client, f"/api/protocols/{protocol_id}/", update, manager_hdrs)
        assert resp.status_code == 200, resp.content
        data = resp.json()["data"]
        assert data == {"id": protocol_id, "actions": data["actions"]}
        assert data["actions"]["to_get"] is False
        assert data["actions"]["to_update"] is False
        assert not Protocol.objects.get(id=protocol_id).managers.exists()

        resp = client.get(f"/api/protocols/{protocol_id}/", **manager_hdrs)
        assert resp.status_code == 404
