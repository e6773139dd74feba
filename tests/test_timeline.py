import pytest
from sqlalchemy.orm import Session

from models import Follow, LikeTarget, ListStatus
from services import engagement, feed, posts, rankings, social_graph, timeline
from utils.errors import NotFound, PermissionDenied, ValidationFailed


def _posts(db: Session, author, count: int) -> list:
    return [posts.create_post(db, author.id, f"post {i}")[1].id for i in range(count)]


def _follow(db: Session, follower, owner) -> None:
    db.add(Follow(follower_id=follower.id, following_id=owner.id))
    db.commit()


def test_home_feed_has_own_and_followed_entries(db: Session, make_user) -> None:
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol")
    own = _posts(db, alice, 1)
    followed = _posts(db, bob, 1)
    _posts(db, carol, 1)
    _follow(db, alice, bob)

    items, next_cursor = timeline.get_home_feed(db, alice.id, 20)

    assert [item["id"] for item in items] == followed + own
    assert next_cursor is None


def test_home_feed_is_empty_when_signed_out(db: Session, make_user) -> None:
    _posts(db, make_user("alice"), 2)
    assert timeline.get_home_feed(db, None, 20) == ([], None)


def test_pages_are_disjoint_and_complete(db: Session, make_user) -> None:
    alice = make_user("alice")
    ids = _posts(db, alice, 5)

    seen = []
    cursor = None
    pages = 0
    while True:
        items, cursor = timeline.get_profile_feed(db, alice.id, None, 2, cursor)
        seen.extend(item["id"] for item in items)
        pages += 1
        if cursor is None:
            break

    assert seen == list(reversed(ids))
    assert pages == 3


def test_exact_page_has_no_next_cursor(db: Session, make_user) -> None:
    alice = make_user("alice")
    _posts(db, alice, 2)

    items, next_cursor = timeline.get_profile_feed(db, alice.id, None, 2)

    assert len(items) == 2
    assert next_cursor is None


@pytest.mark.parametrize("limit", [0, -1, 51])
def test_limit_out_of_range(db: Session, make_user, limit) -> None:
    alice = make_user("alice")
    with pytest.raises(ValidationFailed):
        timeline.get_home_feed(db, alice.id, limit)


def test_deleted_cursor_is_reported(db: Session, make_user) -> None:
    alice = make_user("alice")
    _posts(db, alice, 3)
    _, cursor = timeline.get_profile_feed(db, alice.id, None, 1)

    post_id = feed.get_feed_item(db, cursor).post_id
    posts.delete_post(db, post_id, alice.id)

    with pytest.raises(NotFound):
        timeline.get_profile_feed(db, alice.id, None, 1, cursor)


def test_private_profile_feed_needs_follow(db: Session, make_user) -> None:
    alice, bob = make_user("alice", is_private=True), make_user("bob")
    _posts(db, alice, 1)

    with pytest.raises(PermissionDenied):
        timeline.get_profile_feed(db, alice.id, bob.id, 20)
    with pytest.raises(PermissionDenied):
        timeline.get_profile_feed(db, alice.id, None, 20)
    assert len(timeline.get_profile_feed(db, alice.id, alice.id, 20)[0]) == 1

    _follow(db, bob, alice)
    assert len(timeline.get_profile_feed(db, alice.id, bob.id, 20)[0]) == 1


def test_home_feed_hides_private_entries_after_unfollow(db: Session, make_user) -> None:
    alice, bob = make_user("alice", is_private=True), make_user("bob")
    _posts(db, alice, 1)
    _follow(db, bob, alice)
    assert len(timeline.get_home_feed(db, bob.id, 20)[0]) == 1

    social_graph.unfollow_user(db, bob.id, alice.id)

    assert timeline.get_home_feed(db, bob.id, 20)[0] == []


def test_details_of_hidden_entry_is_not_found(db: Session, make_user) -> None:
    alice, bob = make_user("alice", is_private=True), make_user("bob")
    [entry_id] = _posts(db, alice, 1)

    with pytest.raises(NotFound):
        timeline.get_feed_item_details(db, entry_id, bob.id)
    with pytest.raises(NotFound):
        timeline.get_feed_item_details(db, 999, bob.id)

    details = timeline.get_feed_item_details(db, entry_id, alice.id)
    assert details["post"]["content"] == "post 0"
    assert details["user"]["username"] == "alice"


def test_nested_origin_is_hidden_from_viewers_who_cannot_see_it(db: Session, make_user) -> None:
    alice, bob, carol = make_user("alice", is_private=True), make_user("bob"), make_user("carol")
    [entry_id] = _posts(db, alice, 1)
    _follow(db, bob, alice)
    _, quote = feed.quote_retweet(db, entry_id, bob.id, "worth reading")

    for_bob = timeline.get_feed_item_details(db, quote.id, bob.id)
    for_carol = timeline.get_feed_item_details(db, quote.id, carol.id)

    assert for_bob["quoted_feed_item"]["id"] == entry_id
    assert for_bob["quoted_feed_item"]["quote_retweet_count"] == 1
    assert for_carol["quoted_feed_item_id"] == entry_id
    assert for_carol["quoted_feed_item"] is None


def test_projection_carries_viewer_flags_and_counts(db: Session, make_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    post, entry = posts.create_post(db, alice.id, "hello")
    retweet_id = feed.retweet(db, entry.id, bob.id)
    engagement.like(db, bob.id, LikeTarget.post(post.id))

    items, _ = timeline.get_profile_feed(db, bob.id, bob.id, 20)

    [item] = items
    assert item["id"] == retweet_id
    assert item["type"] == "RETWEET"
    origin = item["retweet_of_feed_item"]
    assert origin["id"] == entry.id
    assert origin["retweet_count"] == 1
    assert origin["retweeted_by_viewer"] is True
    assert origin["post"]["like_count"] == 1
    assert origin["post"]["liked_by_viewer"] is True
    # the origin is resolved one level only
    assert "retweet_of_feed_item" not in origin


def test_ranking_update_projection_previews_top_items(db: Session, make_user) -> None:
    alice = make_user("alice")
    ranking_list = rankings.create_ranking_list(
        db, alice.id, "Top five", items=[{"item_name": f"item {i}"} for i in range(5)]
    )
    rankings.set_ranking_status(db, ranking_list.id, alice.id, ListStatus.PUBLISHED)

    [item], _ = timeline.get_profile_feed(db, alice.id, None, 20)

    assert item["type"] == "RANKING_UPDATE"
    assert item["ranking_list"]["item_count"] == 5
    assert [i["rank"] for i in item["ranking_list"]["items"]] == [1, 2, 3]


def test_liked_feed_follows_like_order(db: Session, make_user) -> None:
    alice, bob, carol = make_user("alice"), make_user("bob"), make_user("carol", is_private=True)
    first, first_entry = posts.create_post(db, alice.id, "first")
    second, second_entry = posts.create_post(db, alice.id, "second")
    hidden, _ = posts.create_post(db, carol.id, "hidden")
    engagement.like(db, bob.id, LikeTarget.post(second.id))
    engagement.like(db, bob.id, LikeTarget.post(first.id))
    engagement.like(db, carol.id, LikeTarget.post(hidden.id))

    items, next_cursor = timeline.get_liked_feed(db, bob.id, None, 20)

    assert [item["id"] for item in items] == [first_entry.id, second_entry.id]
    assert next_cursor is None
    with pytest.raises(PermissionDenied):
        timeline.get_liked_feed(db, carol.id, bob.id, 20)
