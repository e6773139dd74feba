import pytest
from sqlalchemy.orm import Session

from models import Follow, ListStatus, RankingListComment
from services import comments, rankings
from utils.errors import NotFound, PermissionDenied, Unauthenticated, ValidationFailed


def _published_list(db: Session, author):
    ranking_list = rankings.create_ranking_list(db, author.id, "Best ramen", items=[{"item_name": "Tonkotsu"}])
    rankings.set_ranking_status(db, ranking_list.id, author.id, ListStatus.PUBLISHED)
    return ranking_list


def test_comments_are_listed_newest_first_and_paged(db: Session, make_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    ranking_list = _published_list(db, alice)
    created = [comments.create_comment(db, ranking_list.id, bob.id, f"comment {i}").id for i in range(3)]

    first, cursor = comments.list_comments(db, ranking_list.id, None, 2)
    rest, end = comments.list_comments(db, ranking_list.id, None, 2, cursor)

    assert [c.id for c in first + rest] == list(reversed(created))
    assert first[0].user.username == "bob"
    assert end is None


def test_create_comment_trims_and_validates(db: Session, make_user) -> None:
    alice = make_user("alice")
    ranking_list = _published_list(db, alice)

    comment = comments.create_comment(db, ranking_list.id, alice.id, "  nice list  ")
    assert comment.content == "nice list"

    for content in ("", "   ", "x" * 281):
        with pytest.raises(ValidationFailed):
            comments.create_comment(db, ranking_list.id, alice.id, content)
    with pytest.raises(Unauthenticated):
        comments.create_comment(db, ranking_list.id, None, "hi")
    with pytest.raises(NotFound):
        comments.create_comment(db, 999, alice.id, "hi")
    assert db.query(RankingListComment).count() == 1


def test_private_author_comments_need_follow(db: Session, make_user) -> None:
    alice, bob = make_user("alice", is_private=True), make_user("bob")
    ranking_list = _published_list(db, alice)
    comments.create_comment(db, ranking_list.id, alice.id, "first")

    with pytest.raises(PermissionDenied):
        comments.list_comments(db, ranking_list.id, bob.id, 20)
    with pytest.raises(PermissionDenied):
        comments.create_comment(db, ranking_list.id, bob.id, "let me in")

    db.add(Follow(follower_id=bob.id, following_id=alice.id))
    db.commit()
    assert len(comments.list_comments(db, ranking_list.id, bob.id, 20)[0]) == 1


def test_draft_list_comments_are_hidden_from_others(db: Session, make_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    ranking_list = rankings.create_ranking_list(db, alice.id, "Work in progress")

    comments.create_comment(db, ranking_list.id, alice.id, "note to self")

    with pytest.raises(NotFound):
        comments.list_comments(db, ranking_list.id, bob.id, 20)
    assert len(comments.list_comments(db, ranking_list.id, alice.id, 20)[0]) == 1


def test_only_comment_author_deletes(db: Session, make_user) -> None:
    alice, bob = make_user("alice"), make_user("bob")
    ranking_list = _published_list(db, alice)
    comment_id = comments.create_comment(db, ranking_list.id, bob.id, "mine").id

    with pytest.raises(PermissionDenied):
        comments.delete_comment(db, ranking_list.id, comment_id, alice.id)
    with pytest.raises(NotFound):
        comments.delete_comment(db, ranking_list.id + 1, comment_id, bob.id)

    comments.delete_comment(db, ranking_list.id, comment_id, bob.id)
    assert db.query(RankingListComment).count() == 0
    with pytest.raises(NotFound):
        comments.delete_comment(db, ranking_list.id, comment_id, bob.id)
