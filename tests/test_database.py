import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from database import run_in_transaction
from models import ImageDeletion, User
from utils.errors import Conflict, Transient


def _connection_lost(invalidated: bool = True) -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("server closed the connection"),
                            connection_invalidated=invalidated)


def test_lost_connection_is_retried_once_then_transient(db: Session) -> None:
    attempts = []

    def _operation(db: Session) -> None:
        attempts.append(1)
        db.add(ImageDeletion(key=f"key-{len(attempts)}"))
        raise _connection_lost()

    with pytest.raises(Transient):
        run_in_transaction(db, _operation)

    assert len(attempts) == 2
    assert db.query(ImageDeletion).count() == 0


def test_single_loss_reruns_whole_operation_and_commits_once(db: Session) -> None:
    attempts = []

    def _operation(db: Session) -> str:
        attempts.append(1)
        db.add(ImageDeletion(key=f"key-{len(attempts)}"))
        db.flush()
        if len(attempts) == 1:
            raise _connection_lost()
        return "done"

    assert run_in_transaction(db, _operation) == "done"

    assert len(attempts) == 2
    # the half-done first attempt was rolled back
    assert [row.key for row in db.query(ImageDeletion).all()] == ["key-2"]


def test_other_database_errors_are_not_retried(db: Session) -> None:
    attempts = []

    def _operation(db: Session) -> None:
        attempts.append(1)
        raise _connection_lost(invalidated=False)

    with pytest.raises(OperationalError):
        run_in_transaction(db, _operation)

    assert len(attempts) == 1


def test_unique_violation_surfaces_as_conflict(db: Session, make_user) -> None:
    make_user("alice")

    def _operation(db: Session) -> None:
        db.add(User(firebase_uid="uid-other", username="alice"))
        db.flush()

    with pytest.raises(Conflict):
        run_in_transaction(db, _operation)

    # the session is usable again after the rollback
    assert db.query(User).filter(User.username == "alice").count() == 1
