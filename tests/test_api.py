import pytest
from sqlalchemy.orm import Session

from models import ImageDeletion
from services import storage
from utils.errors import NotFound


def _sync(client, uid: str, username: str) -> dict:
    response = client.post("/users/sync", json={"username": username}, headers={"X-Test-Principal": uid})
    assert response.status_code == 200
    return response.json()


def test_private_account_retweet_scenario(client) -> None:
    a = _sync(client, "uid-a", "author")
    b = _sync(client, "uid-b", "reader")
    as_a = {"X-Test-Principal": "uid-a"}
    as_b = {"X-Test-Principal": "uid-b"}

    assert client.patch("/users/me", json={"is_private": True}, headers=as_a).json()["is_private"] is True
    created = client.post("/posts/", json={"content": "hello followers"}, headers=as_a)
    assert created.status_code == 201
    entry_id = created.json()["feed_item_id"]

    denied = client.post(f"/feed/{entry_id}/retweet", headers=as_b)
    assert denied.status_code == 403
    assert denied.json()["success"] is False
    assert denied.json()["kind"] == "permission_denied"

    followed = client.post(f"/follows/{a['id']}", headers=as_b)
    assert followed.json() == {"success": True, "error": None, "status": "REQUEST_SENT"}

    requests = client.get("/follows/requests", headers=as_a).json()["items"]
    assert [r["requester"]["username"] for r in requests] == ["reader"]
    accepted = client.post(f"/follows/requests/{requests[0]['id']}/accept", headers=as_a)
    assert accepted.json()["request"]["status"] == "ACCEPTED"

    retweeted = client.post(f"/feed/{entry_id}/retweet", headers=as_b)
    assert retweeted.status_code == 200
    retweet_id = retweeted.json()["feed_item_id"]

    page = client.get(f"/feed/users/{b['id']}", headers=as_b).json()
    [item] = page["items"]
    assert item["id"] == retweet_id
    assert item["type"] == "RETWEET"
    assert item["retweet_of_feed_item"]["post"]["content"] == "hello followers"
    assert page["next_cursor"] is None


def test_sign_in_required_for_mutations(client, make_user) -> None:
    alice = make_user("alice")

    response = client.post(f"/follows/{alice.id}")
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Sign in required", "kind": "unauthenticated"}

    assert client.post("/posts/", json={"content": "hi"}).status_code == 401
    assert client.post("/likes/posts/1").status_code == 401
    assert client.post("/users/sync", json={"username": "ghost"}).status_code == 401


def test_unknown_principal_is_anonymous(client, make_user) -> None:
    _sync(client, "uid-a", "author")
    response = client.get("/feed/home", headers={"X-Test-Principal": "uid-unknown"})
    assert response.json() == {"items": [], "next_cursor": None}


def test_sync_rejects_taken_username(client) -> None:
    _sync(client, "uid-a", "author")
    response = client.post("/users/sync", json={"username": "author"}, headers={"X-Test-Principal": "uid-b"})
    assert response.status_code == 409
    assert response.json()["kind"] == "conflict"


def test_limit_is_validated(client, make_user, as_user) -> None:
    alice = make_user("alice")
    response = client.get("/feed/home", params={"limit": 51}, headers=as_user(alice))
    assert response.status_code == 422
    assert response.json()["kind"] == "validation_failed"


def test_home_feed_pages_with_cursor(client, make_user, as_user) -> None:
    alice = make_user("alice")
    for i in range(3):
        client.post("/posts/", json={"content": f"post {i}"}, headers=as_user(alice))

    first = client.get("/feed/home", params={"limit": 2}, headers=as_user(alice)).json()
    second = client.get(
        "/feed/home", params={"limit": 2, "cursor": first["next_cursor"]}, headers=as_user(alice)
    ).json()

    assert [i["post"]["content"] for i in first["items"]] == ["post 2", "post 1"]
    assert [i["post"]["content"] for i in second["items"]] == ["post 0"]
    assert second["next_cursor"] is None


def test_like_endpoints(client, make_user, as_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    post_id = client.post("/posts/", json={"content": "like me"}, headers=as_user(alice)).json()["post_id"]

    assert client.post(f"/likes/posts/{post_id}", headers=as_user(bob)).json()["like_count"] == 1
    assert client.post(f"/likes/posts/{post_id}", headers=as_user(bob)).json()["like_count"] == 1
    assert client.get(f"/likes/posts/{post_id}", headers=as_user(bob)).json() == {"liked": True, "like_count": 1}
    assert client.get(f"/likes/posts/{post_id}").json() == {"liked": False, "like_count": 1}

    unliked = client.delete(f"/likes/posts/{post_id}", headers=as_user(bob)).json()
    assert unliked["liked"] is False
    assert unliked["like_count"] == 0

    assert client.post("/likes/ranking-lists/999", headers=as_user(bob)).status_code == 404


def test_quote_and_ranking_endpoints(client, make_user, as_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    created = client.post(
        "/ranking-lists/",
        json={"subject": "Best pizza", "items": [{"item_name": "Margherita"}, {"item_name": "Diavola"}]},
        headers=as_user(alice),
    ).json()
    assert created["status"] == "DRAFT"

    published = client.patch(
        f"/ranking-lists/{created['ranking_list_id']}/status", json={"status": "PUBLISHED"}, headers=as_user(alice)
    )
    assert published.json()["status"] == "PUBLISHED"
    [entry] = client.get(f"/feed/users/{alice.id}").json()["items"]
    assert entry["type"] == "RANKING_UPDATE"

    quoted = client.post(f"/feed/{entry['id']}/quote", json={"comment": "Diavola first"}, headers=as_user(bob))
    assert quoted.status_code == 201
    quote_id = quoted.json()["feed_item_id"]
    assert client.get(f"/feed/{entry['id']}").json()["quote_retweet_count"] == 1

    assert client.delete(f"/feed/quotes/{quote_id}", headers=as_user(alice)).status_code == 403
    assert client.delete(f"/feed/quotes/{quote_id}", headers=as_user(bob)).json()["success"] is True
    assert client.get(f"/feed/{entry['id']}").json()["quote_retweet_count"] == 0


def test_profile_reports_counts_and_status(client, make_user, as_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    client.post(f"/follows/{alice.id}", headers=as_user(bob))

    profile = client.get("/users/alice/profile", headers=as_user(bob)).json()
    assert profile["follower_count"] == 1
    assert profile["following_count"] == 0
    assert profile["follow_status"] == "FOLLOWING"

    assert client.get("/users/alice/profile").json()["follow_status"] == "CANNOT_FOLLOW"
    assert client.get("/users/nobody/profile").status_code == 404

    status = client.get(f"/follows/{alice.id}/status", headers=as_user(alice)).json()
    assert status["status"] == "SELF"


def test_replacing_avatar_queues_old_image(client, db: Session, make_user, as_user) -> None:
    alice = make_user("alice")
    client.patch("/users/me", json={"image": "avatars/one.png"}, headers=as_user(alice))
    client.patch("/users/me", json={"image": "avatars/two.png"}, headers=as_user(alice))

    [pending] = storage.pending_image_deletions(db)
    assert pending.key == "avatars/one.png"

    deletion_id = pending.id
    storage.acknowledge_image_deletion(db, deletion_id)
    assert db.query(ImageDeletion).count() == 0
    with pytest.raises(NotFound):
        storage.acknowledge_image_deletion(db, deletion_id)


def test_null_privacy_flag_is_rejected_before_writing(client, make_user, as_user) -> None:
    alice = make_user("alice", is_private=True)

    response = client.patch("/users/me", json={"is_private": None, "bio": "changed"}, headers=as_user(alice))

    assert response.status_code == 422
    assert response.json() == {"success": False, "error": "is_private cannot be null", "kind": "validation_failed"}
    me = client.get("/users/me", headers=as_user(alice)).json()
    assert me["is_private"] is True
    assert me["bio"] is None


def test_ranking_comment_endpoints(client, make_user, as_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    list_id = client.post("/ranking-lists/", json={"subject": "Best tea"}, headers=as_user(alice)).json()["ranking_list_id"]
    client.patch(f"/ranking-lists/{list_id}/status", json={"status": "PUBLISHED"}, headers=as_user(alice))

    created = client.post(f"/ranking-lists/{list_id}/comments", json={"content": "Sencha!"}, headers=as_user(bob))
    assert created.status_code == 201
    comment = created.json()["comment"]
    assert comment["user"]["username"] == "bob"

    assert client.post(f"/ranking-lists/{list_id}/comments", json={"content": "hi"}).status_code == 401
    page = client.get(f"/ranking-lists/{list_id}/comments").json()
    assert [c["content"] for c in page["items"]] == ["Sencha!"]

    assert client.delete(f"/ranking-lists/{list_id}/comments/{comment['id']}", headers=as_user(alice)).status_code == 403
    deleted = client.delete(f"/ranking-lists/{list_id}/comments/{comment['id']}", headers=as_user(bob))
    assert deleted.json()["success"] is True
    assert client.get(f"/ranking-lists/{list_id}/comments").json()["items"] == []


def test_like_status_of_private_post_is_hidden(client, make_user, as_user) -> None:
    alice, bob = make_user("alice", is_private=True), make_user("bob")
    post_id = client.post("/posts/", json={"content": "followers only"}, headers=as_user(alice)).json()["post_id"]

    liked = client.post(f"/likes/posts/{post_id}", headers=as_user(bob))
    assert liked.status_code == 403
    assert liked.json()["kind"] == "permission_denied"
    assert client.get(f"/likes/posts/{post_id}", headers=as_user(bob)).status_code == 403
    assert client.get(f"/likes/posts/{post_id}", headers=as_user(alice)).json() == {"liked": False, "like_count": 0}
