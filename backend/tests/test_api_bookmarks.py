from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.errors import register_error_handlers
from api.routes import bookmarks as bookmarks_router
from api.routes import places as places_router
from api.routes import users as users_router
from domain.errors import NetworkError
from domain.models import PlaceDetail
from services.bookmarks import BookmarkGateway

USER = {"X-User-Id": "user_ext_1"}


class StubClient:
    def __init__(self, details):
        self.details = details

    def detail_common(self, content_id):
        value = self.details.get(content_id)
        if isinstance(value, Exception):
            raise value
        return value


@pytest.fixture
def api(session_factory):
    app = FastAPI()
    register_error_handlers(app)
    app.include_router(bookmarks_router.router, prefix="/bookmarks")
    app.include_router(users_router.router, prefix="/users")
    app.dependency_overrides[places_router.get_tour_client] = lambda: StubClient(
        {
            "1": PlaceDetail(content_id="1", content_type_id="12", title="하회마을", addr1="경상북도"),
            "2": PlaceDetail(content_id="2", content_type_id="12", title="경복궁", addr1="서울"),
            "3": NetworkError("offline"),
        }
    )
    with patch.object(bookmarks_router, "gateway", BookmarkGateway(session_factory)), patch.object(
        users_router, "SessionLocal", session_factory
    ):
        yield TestClient(app)


def test_sync_then_bookmark_flow(api):
    resp = api.post("/users/sync", json={"name": "Minji"}, headers=USER)
    assert resp.status_code == 200
    assert resp.json()["external_id"] == "user_ext_1"

    resp = api.post("/bookmarks", json={"content_id": "1"}, headers=USER)
    assert resp.status_code == 201
    assert resp.json()["content_id"] == "1"
    assert resp.json()["created_at"].endswith(("Z", "+00:00"))

    assert api.get("/bookmarks/1", headers=USER).json() == {"content_id": "1", "bookmarked": True}

    resp = api.post("/bookmarks", json={"content_id": "1"}, headers=USER)
    assert resp.status_code == 409
    assert resp.json()["type"] == "duplicate"


def test_sync_is_idempotent(api):
    first = api.post("/users/sync", json={"name": "Minji"}, headers=USER).json()
    second = api.post("/users/sync", json={"name": "Minji K"}, headers=USER).json()
    assert first["id"] == second["id"]
    assert second["name"] == "Minji K"


def test_missing_header_is_401(api):
    resp = api.get("/bookmarks")
    assert resp.status_code == 401
    assert resp.json()["type"] == "authentication"


def test_unsynced_user_is_403(api):
    resp = api.get("/bookmarks", headers={"X-User-Id": "stranger"})
    assert resp.status_code == 403
    assert resp.json()["type"] == "not_synced"


def test_list_skips_unavailable_places_and_sorts(api):
    api.post("/users/sync", json={"name": "Minji"}, headers=USER)
    for cid in ("1", "2", "3"):
        api.post("/bookmarks", json={"content_id": cid}, headers=USER)

    resp = api.get("/bookmarks", params={"sort": "name"}, headers=USER)

    assert resp.status_code == 200
    assert [i["place"]["title"] for i in resp.json()] == ["경복궁", "하회마을"]


def test_delete_is_idempotent(api):
    api.post("/users/sync", json={}, headers=USER)
    api.post("/bookmarks", json={"content_id": "1"}, headers=USER)

    assert api.delete("/bookmarks/1", headers=USER).json() == {"success": True}
    assert api.delete("/bookmarks/1", headers=USER).json() == {"success": True}
    assert api.get("/bookmarks/1", headers=USER).json()["bookmarked"] is False


def test_toggle_and_batch_delete(api):
    api.post("/users/sync", json={}, headers=USER)

    assert api.post("/bookmarks/1/toggle", headers=USER).json()["bookmarked"] is True
    assert api.post("/bookmarks/2/toggle", headers=USER).json()["bookmarked"] is True
    assert api.post("/bookmarks/2/toggle", headers=USER).json()["bookmarked"] is False

    resp = api.post("/bookmarks/batch-delete", json={"content_ids": ["1", "2"]}, headers=USER)

    assert resp.status_code == 200
    assert resp.json() == {"removed": ["1", "2"], "failed": {}}
    assert api.get("/bookmarks", headers=USER).json() == []
