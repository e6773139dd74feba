import logging
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from database import run_in_transaction
from models.RankedItem import RankedItem
from models.RankingList import ListStatus, RankingList
from services import feed
from utils.errors import NotFound, PermissionDenied, Unauthenticated

logger = logging.getLogger(__name__)


def create_ranking_list(
    db: Session,
    author_id: Optional[int],
    subject: str,
    description: Optional[str] = None,
    items: Iterable[dict] = (),
    list_image_url: Optional[str] = None,
) -> RankingList:
    """Create a DRAFT list; ``items`` are ranked in the order given."""
    if author_id is None:
        raise Unauthenticated("Sign in required")

    def _create(db: Session) -> RankingList:
        ranking_list = RankingList(
            author_id=author_id,
            subject=subject,
            description=description,
            list_image_url=list_image_url,
            status=ListStatus.DRAFT,
        )
        for rank, item in enumerate(items, start=1):
            ranking_list.items.append(RankedItem(
                rank=rank,
                item_name=item["item_name"],
                item_description=item.get("item_description"),
                image_url=item.get("image_url"),
            ))
        db.add(ranking_list)
        db.flush()
        return ranking_list

    ranking_list = run_in_transaction(db, _create)
    logger.info("User %s created ranking list %s", author_id, ranking_list.id)
    return ranking_list


def set_ranking_status(
    db: Session, ranking_list_id: int, actor_id: Optional[int], status: ListStatus
) -> RankingList:
    """
    Move a list between DRAFT and PUBLISHED. Publishing upserts the list's
    RANKING_UPDATE feed entry; reverting to DRAFT retracts it.
    """
    if actor_id is None:
        raise Unauthenticated("Sign in required")

    def _set_status(db: Session) -> RankingList:
        ranking_list = db.query(RankingList).filter(RankingList.id == ranking_list_id).first()
        if not ranking_list:
            raise NotFound("Ranking list not found")
        if ranking_list.author_id != actor_id:
            raise PermissionDenied("Not authorized to change this ranking list")

        ranking_list.status = status
        if status == ListStatus.PUBLISHED:
            feed.publish_ranking_update(db, ranking_list.id, ranking_list.author_id)
        else:
            feed.retract_ranking_update(db, ranking_list.id)
        return ranking_list

    ranking_list = run_in_transaction(db, _set_status)
    db.refresh(ranking_list)
    logger.info("Ranking list %s set to %s by user %s", ranking_list_id, status.value, actor_id)
    return ranking_list
