"""Tests for saved prompt CRUD and owner scoping."""
from datetime import datetime, timedelta, timezone

import pytest

from app.errors import AppError
from app.models.prompt import SavedPrompt
from app.services import prompt_store
from conftest import auth_headers


def save(client, user_id, text, prompt_type="image", tags=None):
    response = client.post(
        "/api/prompts",
        json={"prompt_text": text, "type": prompt_type, "tags": tags or []},
        headers=auth_headers(user_id),
    )
    assert response.status_code == 200, response.text
    return response.json()["prompt"]


class TestCreatePrompt:
    def test_save_prompt(self, client):
        prompt = save(client, "user-a", "  Candi Prambanan saat senja  ", tags=["temple"])
        assert prompt["user_id"] == "user-a"
        assert prompt["prompt_text"] == "Candi Prambanan saat senja"
        assert prompt["tags"] == ["temple"]
        assert prompt["is_favorite"] is False

    def test_invalid_type_rejected(self, client):
        response = client.post(
            "/api/prompts",
            json={"prompt_text": "hello", "type": "video"},
            headers=auth_headers("user-a"),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid prompt type"}

    def test_blank_text_rejected(self, client):
        response = client.post(
            "/api/prompts",
            json={"prompt_text": "   ", "type": "text"},
            headers=auth_headers("user-a"),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Prompt text and type are required"}

    def test_too_long_rejected(self, client):
        response = client.post(
            "/api/prompts",
            json={"prompt_text": "a" * 5001, "type": "text"},
            headers=auth_headers("user-a"),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Prompt text too long (max 5000 characters)"}

    def test_limit_per_user(self, db, monkeypatch):
        monkeypatch.setattr(prompt_store, "MAX_PROMPTS_PER_USER", 2)
        prompt_store.create_prompt(db, "user-a", "one", "text")
        prompt_store.create_prompt(db, "user-a", "two", "text")

        with pytest.raises(AppError) as exc_info:
            prompt_store.create_prompt(db, "user-a", "three", "text")
        assert exc_info.value.status_code == 400

        # Other users have their own allowance
        prompt_store.create_prompt(db, "user-b", "one", "text")


class TestListPrompts:
    def test_only_own_prompts_listed(self, client):
        save(client, "user-a", "milik A")
        save(client, "user-b", "milik B")

        prompts = client.get("/api/prompts", headers=auth_headers("user-a")).json()["prompts"]
        assert [p["prompt_text"] for p in prompts] == ["milik A"]

    def test_newest_first(self, db, client):
        now = datetime.now(timezone.utc)
        for days_ago, text in [(2, "lama"), (0, "baru"), (1, "tengah")]:
            db.add(SavedPrompt(user_id="user-a", prompt_text=text, type="text", tags=[],
                               created_at=now - timedelta(days=days_ago)))
        db.commit()

        prompts = client.get("/api/prompts", headers=auth_headers("user-a")).json()["prompts"]
        assert [p["prompt_text"] for p in prompts] == ["baru", "tengah", "lama"]

    def test_filter_by_type_and_favorites(self, client):
        image = save(client, "user-a", "gambar sawah", "image")
        save(client, "user-a", "cerita rakyat", "text")
        client.put(f"/api/prompts/{image['id']}", json={"is_favorite": True}, headers=auth_headers("user-a"))

        texts = client.get("/api/prompts?type=text", headers=auth_headers("user-a")).json()["prompts"]
        favorites = client.get("/api/prompts?type=favorites", headers=auth_headers("user-a")).json()["prompts"]
        everything = client.get("/api/prompts?type=all", headers=auth_headers("user-a")).json()["prompts"]

        assert [p["prompt_text"] for p in texts] == ["cerita rakyat"]
        assert [p["id"] for p in favorites] == [image["id"]]
        assert len(everything) == 2

    def test_search_is_case_insensitive(self, client):
        save(client, "user-a", "Pantai Kuta di pagi hari")
        save(client, "user-a", "Gunung Rinjani")

        prompts = client.get("/api/prompts?search=kuta", headers=auth_headers("user-a")).json()["prompts"]
        assert [p["prompt_text"] for p in prompts] == ["Pantai Kuta di pagi hari"]

    def test_limit_is_capped(self, db, client):
        for i in range(3):
            prompt_store.create_prompt(db, "user-a", f"prompt {i}", "text")

        assert len(prompt_store.list_prompts(db, "user-a", limit=2)) == 2
        assert len(prompt_store.list_prompts(db, "user-a", limit=1000)) == 3


class TestUpdateAndDelete:
    def test_toggle_favorite_and_tags(self, client):
        prompt = save(client, "user-a", "Wayang kulit")
        response = client.put(
            f"/api/prompts/{prompt['id']}",
            json={"is_favorite": True, "tags": ["wayang", "jawa"]},
            headers=auth_headers("user-a"),
        )
        assert response.status_code == 200
        updated = response.json()["prompt"]
        assert updated["is_favorite"] is True
        assert updated["tags"] == ["wayang", "jawa"]

    def test_update_without_fields(self, client):
        prompt = save(client, "user-a", "Wayang kulit")
        response = client.put(f"/api/prompts/{prompt['id']}", json={}, headers=auth_headers("user-a"))
        assert response.status_code == 400
        assert response.json() == {"error": "No valid fields to update"}

    def test_cannot_update_someone_elses_prompt(self, client):
        prompt = save(client, "user-a", "Wayang kulit")
        response = client.put(
            f"/api/prompts/{prompt['id']}",
            json={"is_favorite": True},
            headers=auth_headers("user-b"),
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Prompt not found or access denied"}

    def test_delete_own_prompt(self, client):
        prompt = save(client, "user-a", "Tari Saman")
        response = client.delete(f"/api/prompts/{prompt['id']}", headers=auth_headers("user-a"))
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get("/api/prompts", headers=auth_headers("user-a")).json()["prompts"] == []

    def test_cannot_delete_someone_elses_prompt(self, client):
        prompt = save(client, "user-a", "Tari Saman")
        response = client.delete(f"/api/prompts/{prompt['id']}", headers=auth_headers("user-b"))
        assert response.status_code == 404

        prompts = client.get("/api/prompts", headers=auth_headers("user-a")).json()["prompts"]
        assert [p["id"] for p in prompts] == [prompt["id"]]


def test_suggestions_come_from_gallery(client):
    response = client.get("/api/enhance-prompt/get-suggestions")
    assert response.status_code == 200
    suggestions = response.json()["suggestions"]
    assert len(suggestions) == 6
    assert {s["type"] for s in suggestions} == {"image", "text"}
