from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from src.api.config import Settings
from src.api.main import create_app

GENERATE_BODY = {
    "idea": "launch day",
    "platform": "twitter",
    "tone": "bold",
    "addEmojis": True,
    "addHashtags": True,
    "suggestImages": False,
}

POST_BODY = {"content": "Big news!", "platform": "linkedin", "tone": "professional"}


# Users

def test_create_user_returns_camel_case_record(client):
    res = client.post("/api/users", json={"firebaseUid": "uid-1", "email": "one@example.com"})
    assert res.status_code == 200
    body = res.json()
    assert body["firebaseUid"] == "uid-1"
    assert body["email"] == "one@example.com"
    assert body["displayName"] is None
    assert body["id"] == 2
    assert "createdAt" in body


def test_create_user_is_idempotent(client, registered_user):
    again = client.post("/api/users", json={"firebaseUid": "uid-alice", "email": "other@example.com"})
    assert again.status_code == 200
    assert again.json() == registered_user


def test_create_user_ignores_unknown_fields(client):
    res = client.post("/api/users", json={"firebaseUid": "uid-x", "email": "x@example.com", "role": "admin"})
    assert res.status_code == 200
    assert "role" not in res.json()


def test_create_user_missing_field_is_400(client):
    res = client.post("/api/users", json={"firebaseUid": "uid-1"})
    assert res.status_code == 400
    assert "body.email" in res.json()["message"]


# Generation

def test_generate_post(client, genai_client):
    res = client.post("/api/generate-post", json=GENERATE_BODY)
    assert res.status_code == 200
    assert res.json() == {"content": "Launch day is here! #launch", "platform": "twitter", "tone": "bold"}
    prompt = genai_client.aio.models.generate_content.call_args.kwargs["contents"]
    assert prompt.startswith("Create a social media post for twitter with a bold tone.")
    assert "280 characters" in prompt


def test_generate_post_without_idea(client, genai_client):
    body = {k: v for k, v in GENERATE_BODY.items() if k != "idea"}
    res = client.post("/api/generate-post", json=body)
    assert res.status_code == 200
    prompt = genai_client.aio.models.generate_content.call_args.kwargs["contents"]
    assert "relevant and interesting topic" in prompt


def test_generate_post_upstream_failure_is_500(client, genai_client):
    genai_client.aio.models.generate_content.side_effect = RuntimeError("upstream down")
    res = client.post("/api/generate-post", json=GENERATE_BODY)
    assert res.status_code == 500
    assert res.json() == {"message": "Failed to generate content: upstream down"}


def test_generate_post_empty_result_is_500(client, genai_client):
    genai_client.aio.models.generate_content.return_value = MagicMock(text="")
    res = client.post("/api/generate-post", json=GENERATE_BODY)
    assert res.status_code == 500
    assert res.json()["message"] == "Failed to generate content: No content generated"


def test_generate_post_requires_flags(client, genai_client):
    body = {k: v for k, v in GENERATE_BODY.items() if k != "suggestImages"}
    res = client.post("/api/generate-post", json=body)
    assert res.status_code == 400
    assert "suggestImages" in res.json()["message"]
    genai_client.aio.models.generate_content.assert_not_called()


# Posts

def test_list_posts_requires_identity(client):
    res = client.get("/api/posts")
    assert res.status_code == 401
    assert res.json() == {"message": "Authentication required"}


def test_list_posts_unknown_user(client):
    res = client.get("/api/posts", headers={"x-firebase-uid": "ghost"})
    assert res.status_code == 404
    assert res.json() == {"message": "User not found"}


def test_create_post_requires_identity(client):
    res = client.post("/api/posts", json=POST_BODY)
    assert res.status_code == 401


def test_create_post_uses_resolved_user(client, registered_user, alice_headers):
    res = client.post("/api/posts", headers=alice_headers, json={**POST_BODY, "userId": 999})
    assert res.status_code == 200
    post = res.json()
    assert post["userId"] == registered_user["id"]
    assert post["idea"] is None
    assert post["hasEmojis"] is False
    assert post["hasHashtags"] is False
    assert post["hasSuggestedImages"] is False


def test_create_post_invalid_body_is_400(client, alice_headers):
    res = client.post("/api/posts", headers=alice_headers, json={"platform": "twitter", "tone": "bold"})
    assert res.status_code == 400
    assert "body.content" in res.json()["message"]


def test_list_posts_newest_first_and_scoped_to_user(client, alice_headers):
    client.post("/api/users", json={"firebaseUid": "uid-bob", "email": "bob@example.com"})
    first = client.post("/api/posts", headers=alice_headers, json={**POST_BODY, "content": "first"}).json()
    second = client.post("/api/posts", headers=alice_headers, json={**POST_BODY, "content": "second"}).json()
    bobs = client.post("/api/posts", headers={"x-firebase-uid": "uid-bob"}, json=POST_BODY).json()

    res = client.get("/api/posts", headers=alice_headers)
    assert res.status_code == 200
    assert [p["id"] for p in res.json()] == [second["id"], first["id"]]
    assert bobs["id"] not in [p["id"] for p in res.json()]


def test_delete_invalid_id(client):
    res = client.delete("/api/posts/abc")
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid post ID"}


def test_delete_missing_post_still_succeeds(client):
    res = client.delete("/api/posts/12345")
    assert res.status_code == 200
    assert res.json() == {"message": "Post deleted successfully"}


def test_delete_removes_post(client, alice_headers):
    post = client.post("/api/posts", headers=alice_headers, json=POST_BODY).json()
    assert client.delete(f"/api/posts/{post['id']}").status_code == 200
    assert client.get("/api/posts", headers=alice_headers).json() == []


def test_unknown_route_uses_message_body(client):
    res = client.get("/api/nope")
    assert res.status_code == 404
    assert "message" in res.json()


def test_cors_preflight_open(client):
    res = client.options(
        "/api/generate-post",
        headers={"Origin": "https://app.example.com", "Access-Control-Request-Method": "POST"},
    )
    assert res.status_code == 200
    assert res.headers["access-control-allow-origin"] == "*"


# Owner-checked deletes

@pytest.fixture()
def owner_client(store, generator):
    settings = Settings(storage_backend="memory", enforce_delete_ownership=True)
    return TestClient(create_app(settings=settings, store=store, generator=generator))


def test_owner_delete_requires_identity(owner_client):
    res = owner_client.delete("/api/posts/1")
    assert res.status_code == 401


def test_owner_delete_still_validates_id_first(owner_client):
    res = owner_client.delete("/api/posts/abc")
    assert res.status_code == 400


def test_owner_delete_rejects_foreign_post(owner_client):
    owner_client.post("/api/users", json={"firebaseUid": "uid-a", "email": "a@example.com"})
    owner_client.post("/api/users", json={"firebaseUid": "uid-b", "email": "b@example.com"})
    post = owner_client.post("/api/posts", headers={"x-firebase-uid": "uid-a"}, json=POST_BODY).json()

    res = owner_client.delete(f"/api/posts/{post['id']}", headers={"x-firebase-uid": "uid-b"})
    assert res.status_code == 404
    assert res.json() == {"message": "Post not found"}
    assert len(owner_client.get("/api/posts", headers={"x-firebase-uid": "uid-a"}).json()) == 1

    res = owner_client.delete(f"/api/posts/{post['id']}", headers={"x-firebase-uid": "uid-a"})
    assert res.status_code == 200
    assert owner_client.get("/api/posts", headers={"x-firebase-uid": "uid-a"}).json() == []


def test_owner_delete_missing_post_is_404(owner_client):
    res = owner_client.delete("/api/posts/77", headers={"x-firebase-uid": "default-user"})
    assert res.status_code == 404


def test_owner_delete_unknown_user_is_404(owner_client):
    res = owner_client.delete("/api/posts/1", headers={"x-firebase-uid": "ghost"})
    assert res.status_code == 404
    assert res.json() == {"message": "User not found"}


def test_owner_delete_uses_identity_dependency(owner_client):
    from src.api.main import get_identity

    class FixedIdentity:
        mode = "header"

        def require(self, request):
            return "default-user"

    owner_client.app.dependency_overrides[get_identity] = lambda: FixedIdentity()
    post = owner_client.post("/api/posts", headers={"x-firebase-uid": "default-user"}, json=POST_BODY).json()
    res = owner_client.delete(f"/api/posts/{post['id']}")
    assert res.status_code == 200


@pytest.mark.parametrize("raw", [" 7 ", "1_000", "٣", "12abc", "+5", "1.5"])
def test_delete_rejects_non_ascii_integer_ids(client, raw):
    res = client.delete(f"/api/posts/{raw}")
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid post ID"}


def test_delete_negative_id_is_accepted(client):
    res = client.delete("/api/posts/-3")
    assert res.status_code == 200


@pytest.mark.parametrize("backend", ["memory", "sqlite"])
def test_delete_huge_id_succeeds_on_every_backend(backend, tmp_path, generator):
    settings = Settings(storage_backend=backend, sqlite_db=str(tmp_path / "huge.db"))
    huge_client = TestClient(create_app(settings=settings, generator=generator))
    res = huge_client.delete("/api/posts/99999999999999999999")
    assert res.status_code == 200
    assert res.json() == {"message": "Post deleted successfully"}


def test_unexpected_error_keeps_cors_headers(settings, generator):
    broken_store = MagicMock()
    broken_store.name = "memory"
    broken_store.get_user_by_external_id.side_effect = RuntimeError("disk on fire")
    broken_client = TestClient(create_app(settings=settings, store=broken_store, generator=generator))
    res = broken_client.get(
        "/api/posts",
        headers={"x-firebase-uid": "uid-a", "Origin": "https://app.example.com"},
    )
    assert res.status_code == 500
    assert res.json() == {"message": "Failed to handle request"}
    assert res.headers["access-control-allow-origin"] == "*"
