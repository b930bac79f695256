"""Recipe lifecycle through the API: publish, unpublish, archive, restore."""

import uuid

import pytest
from fastapi.testclient import TestClient

from recipe_hub import models

API = "/api/v1"


def post_status(client, recipe_id, action, headers):
    return client.post(f"{API}/recipes/{recipe_id}/{action}", headers=headers)


@pytest.fixture
def draft(author_headers, make_recipe):
    return make_recipe(author_headers)


class TestValidStatusTransitions:
    def test_draft_to_published(self, client, draft, author_headers):
        response = post_status(client, draft["id"], "publish", author_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "published"

    def test_published_to_draft(self, client, draft, author_headers):
        post_status(client, draft["id"], "publish", author_headers)
        response = post_status(client, draft["id"], "unpublish", author_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "draft"

    def test_author_can_archive(self, client, draft, author_headers):
        response = post_status(client, draft["id"], "archive", author_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "archived"

    def test_admin_can_restore(self, client, draft, author_headers, admin_headers):
        post_status(client, draft["id"], "archive", author_headers)
        response = post_status(client, draft["id"], "restore", admin_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "draft"

    def test_admin_can_publish_any_recipe(self, client, draft, admin_headers):
        assert post_status(client, draft["id"], "publish", admin_headers).status_code == 200


class TestInvalidStatusTransitions:
    def test_author_cannot_restore(self, client, draft, author_headers):
        post_status(client, draft["id"], "archive", author_headers)
        response = post_status(client, draft["id"], "restore", author_headers)
        assert response.status_code == 403

    def test_archived_cannot_be_published(self, client, draft, author_headers):
        post_status(client, draft["id"], "archive", author_headers)
        response = post_status(client, draft["id"], "publish", author_headers)
        assert response.status_code == 400
        assert "transition" in response.json()["message"]

    def test_unpublish_requires_a_published_recipe(self, client, draft, author_headers, admin_headers):
        post_status(client, draft["id"], "archive", author_headers)
        response = post_status(client, draft["id"], "unpublish", admin_headers)
        assert response.status_code == 400
        assert response.json()["errors"] == [
            {"field": "status", "message": "Invalid status transition from 'archived' to 'draft'"}
        ]

    def test_restore_requires_an_archived_recipe(self, client, draft, admin_headers):
        post_status(client, draft["id"], "publish", admin_headers)
        response = post_status(client, draft["id"], "restore", admin_headers)
        assert response.status_code == 400
        assert response.json()["errors"][0]["field"] == "status"
        assert client.get(f"{API}/recipes/{draft['id']}", headers=admin_headers).json()["data"]["status"] == "published"

    def test_other_user_cannot_publish(self, client, draft, other_headers):
        assert post_status(client, draft["id"], "publish", other_headers).status_code == 403

    def test_incomplete_draft_cannot_be_published(self, client, draft, author_headers, db):
        # Only reachable if children were removed outside the API
        db.query(models.RecipeStep).filter(models.RecipeStep.recipe_id == uuid.UUID(draft["id"])).delete()
        db.commit()
        response = post_status(client, draft["id"], "publish", author_headers)
        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["steps"]


class TestIdempotency:
    def test_publish_twice_is_noop(self, client, draft, author_headers):
        first = post_status(client, draft["id"], "publish", author_headers).json()["data"]
        second = post_status(client, draft["id"], "publish", author_headers)
        assert second.status_code == 200
        assert second.json()["data"]["status"] == "published"
        assert second.json()["data"]["viewsCount"] == first["viewsCount"]
        assert second.json()["data"]["likesCount"] == first["likesCount"]

    def test_status_change_keeps_counters(self, client, draft, author_headers, other_headers):
        post_status(client, draft["id"], "publish", author_headers)
        client.get(f"{API}/recipes/{draft['id']}")
        client.post(f"{API}/recipes/{draft['id']}/like", headers=other_headers)
        archived = post_status(client, draft["id"], "archive", author_headers).json()["data"]
        assert archived["viewsCount"] == 1
        assert archived["likesCount"] == 1
