import base64
import io

import pytest
from PIL import Image

from api.server import create_app, slack_link
from tzbuddy.registry import DirectoryStore
from tzbuddy.storage import MemoryStorage


@pytest.fixture
def directory():
    return DirectoryStore(MemoryStorage())


@pytest.fixture
def client(directory):
    app = create_app(directory)
    app.config["TESTING"] = True
    return app.test_client()


def add(client, name="Kenji", zone="Asia/Tokyo", **extra):
    response = client.post("/api/teammates", json={"name": name, "timeZoneIdentifier": zone, **extra})
    assert response.status_code == 201
    return response.get_json()


class TestHealth:
    def test_root(self, client):
        assert client.get("/").get_json()["status"] == "ok"

    def test_health_counts(self, client):
        add(client)
        data = client.get("/api/health").get_json()
        assert data["team_size"] == 1
        assert data["groups"] == 0
        assert data["slack_ready"] is False

    def test_unknown_route_is_json(self, client):
        response = client.get("/api/nope")
        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}


class TestTeammates:
    def test_create(self, client):
        row = add(client, email="kenji@example.com", slackId="U1", groups=["Design"])
        assert row["name"] == "Kenji"
        assert row["zoneName"] == "Tokyo, Asia"
        assert row["timeDifference"] == "+9h"
        assert row["links"]["email"] == "mailto:kenji@example.com"
        assert row["links"]["slack"] == "slack://channel?team=&id=U1"

    @pytest.mark.parametrize("body", [
        {"name": "   ", "timeZoneIdentifier": "UTC"},
        {"timeZoneIdentifier": "UTC"},
        {"name": "A"},
        {"name": "A", "timeZoneIdentifier": "UTC", "groups": "Eng"},
        {"name": "A", "timeZoneIdentifier": "UTC", "email": 42},
        {"name": "A", "timeZoneIdentifier": "UTC", "imageData": "%%%"},
    ])
    def test_create_rejects_bad_payloads(self, client, body):
        assert client.post("/api/teammates", json=body).status_code == 400

    def test_non_object_bodies_are_rejected(self, client):
        tid = add(client)["id"]
        assert client.post("/api/teammates", json=[1]).status_code == 400
        assert client.put(f"/api/teammates/{tid}", json=[1]).status_code == 400

    def test_unknown_zone_is_accepted_with_blank_times(self, client):
        row = add(client, name="Ghost", zone="Not/AZone")
        assert row["localTime"] == ""
        assert row["timeDifference"] == ""

    def test_list_projection(self, client):
        add(client, "Bob", "America/New_York", groups=["Eng"])
        add(client, "alice", "Asia/Tokyo")
        add(client, "Dana", "America/New_York")

        buckets = client.get("/api/teammates?group=timeZone&sort=name").get_json()
        assert [b["key"] for b in buckets] == ["America/New_York", "Asia/Tokyo"]
        assert [t["name"] for t in buckets[0]["teammates"]] == ["Bob", "Dana"]

        [everyone] = client.get("/api/teammates?search=TOKYO").get_json()
        assert everyone["key"] == "All"
        assert [t["name"] for t in everyone["teammates"]] == ["alice"]

    def test_list_rejects_unknown_modes(self, client):
        assert client.get("/api/teammates?sort=age").status_code == 400
        assert client.get("/api/teammates?group=city").status_code == 400

    def test_get_update_delete(self, client):
        row = add(client)
        tid = row["id"]

        assert client.get(f"/api/teammates/{tid}").get_json()["name"] == "Kenji"

        response = client.put(f"/api/teammates/{tid}", json={"name": "Kenji S.", "timeZoneIdentifier": "Asia/Seoul"})
        assert response.status_code == 200
        assert response.get_json()["timeZoneIdentifier"] == "Asia/Seoul"
        assert response.get_json()["id"] == tid

        response = client.delete(f"/api/teammates/{tid}")
        assert response.status_code == 200
        assert client.get(f"/api/teammates/{tid}").status_code == 404

    def test_unknown_ids(self, client):
        body = {"name": "A", "timeZoneIdentifier": "UTC"}
        assert client.get("/api/teammates/nope").status_code == 404
        assert client.put("/api/teammates/nope", json=body).status_code == 404
        assert client.delete("/api/teammates/nope").status_code == 404

    def test_update_keeps_avatar_unless_removed(self, client, directory):
        image = base64.b64encode(b"\xff\xd8jpeg").decode()
        tid = add(client, imageData=image)["id"]
        body = {"name": "Kenji", "timeZoneIdentifier": "Asia/Tokyo"}

        client.put(f"/api/teammates/{tid}", json=body)
        assert directory.get(tid).image_data == b"\xff\xd8jpeg"

        client.put(f"/api/teammates/{tid}", json={**body, "removeImage": True})
        assert directory.get(tid).image_data is None


class TestAvatar:
    def test_upload_is_resized(self, client, directory):
        tid = add(client)["id"]
        raw = io.BytesIO()
        Image.new("RGB", (1000, 500), (10, 20, 30)).save(raw, format="PNG")

        response = client.put(f"/api/teammates/{tid}/avatar", data=raw.getvalue())
        assert response.status_code == 200

        avatar = client.get(f"/api/teammates/{tid}/avatar")
        assert avatar.mimetype == "image/jpeg"
        assert Image.open(io.BytesIO(avatar.data)).size == (400, 200)
        assert directory.get(tid).image_data == avatar.data

    def test_bad_upload(self, client):
        tid = add(client)["id"]
        assert client.put(f"/api/teammates/{tid}/avatar", data=b"nope").status_code == 400

    def test_missing_avatar(self, client):
        tid = add(client)["id"]
        assert client.get(f"/api/teammates/{tid}/avatar").status_code == 404


class TestGroups:
    def test_add_and_remove_cascades(self, client, directory):
        assert client.post("/api/groups", json={"name": "Eng"}).status_code == 201
        assert client.post("/api/groups", json={"name": "Eng"}).status_code == 200
        client.post("/api/groups", json={"name": "Ops"})
        tid = add(client, groups=["Eng", "Ops"])["id"]

        response = client.delete("/api/groups/Eng")
        assert response.get_json() == ["Ops"]
        assert directory.get(tid).groups == {"Ops"}

    def test_labels_with_slashes(self, client):
        client.post("/api/groups", json={"name": "EU/Berlin"})
        assert client.delete("/api/groups/EU/Berlin").get_json() == []

    def test_blank_label(self, client):
        assert client.post("/api/groups", json={"name": " "}).status_code == 400
        assert client.post("/api/groups", json=[1]).status_code == 400


class TestExportImport:
    def test_round_trip(self, client):
        add(client, "A", "UTC")
        add(client, "B", "Asia/Tokyo")
        exported = client.get("/api/export")
        assert exported.status_code == 200
        assert "TimezoneBuddyExport.json" in exported.headers["Content-Disposition"]
        before = [(t["id"], t["name"]) for t in client.get("/api/teammates").get_json()[0]["teammates"]]

        client.post("/api/reset")
        assert client.get("/api/teammates").get_json() == [{"key": "All", "teammates": []}]

        response = client.post("/api/import", data=exported.data, content_type="application/json")
        assert response.status_code == 200
        assert response.get_json()["team_size"] == 2
        after = client.get("/api/teammates").get_json()[0]["teammates"]
        assert [(t["id"], t["name"]) for t in after] == before

    def test_garbage_import(self, client):
        add(client)
        response = client.post("/api/import", data=b"garbage")
        assert response.status_code == 422
        nested = b"[" * 100000 + b"]" * 100000
        assert client.post("/api/import", data=nested).status_code == 422
        assert client.get("/api/health").get_json()["team_size"] == 1


class TestSlackSettings:
    def test_team_id_feeds_links(self, client):
        tid = add(client, slackId="U42")["id"]
        assert client.put("/api/settings/slack", json={"teamId": "T0123"}).get_json() == {"teamId": "T0123"}
        assert client.get("/api/settings/slack").get_json() == {"teamId": "T0123"}
        row = client.get(f"/api/teammates/{tid}").get_json()
        assert row["links"]["slack"] == "slack://channel?team=T0123&id=U42"

    def test_bad_team_id(self, client):
        assert client.put("/api/settings/slack", json={"teamId": 5}).status_code == 400
        assert client.put("/api/settings/slack", json=[1]).status_code == 400

    def test_reset_clears_team_id(self, client):
        client.put("/api/settings/slack", json={"teamId": "T0123"})
        client.post("/api/reset")
        assert client.get("/api/settings/slack").get_json() == {"teamId": ""}


def test_slack_link_needs_an_id():
    assert slack_link("T1", None) is None
    assert slack_link("T1", "") is None


def test_zone_search(client):
    results = client.get("/api/zones?q=tokyo").get_json()
    assert {"id": "Asia/Tokyo", "name": "Tokyo, Asia"}.items() <= results[0].items()
    assert client.get("/api/zones").get_json() == []
