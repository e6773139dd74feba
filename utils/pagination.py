"""
Cursor pagination shared by every list read.

A page request is ``(limit, cursor)``; ``cursor`` is the id of the last item
of the previous page. The query fetches ``limit + 1`` rows in a stable order
(``created_at desc, id desc`` for timelines, ``id desc`` for insertion-ordered
join tables). When the extra row comes back it is dropped and the id of the
last returned row becomes ``next_cursor``; otherwise ``next_cursor`` is None.
"""
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Query

from config import MAX_PAGE_LIMIT
from utils.errors import NotFound, ValidationFailed


def check_limit(limit: int) -> int:
    if limit < 1 or limit > MAX_PAGE_LIMIT:
        raise ValidationFailed(f"limit must be between 1 and {MAX_PAGE_LIMIT}")
    return limit


def fetch_page(
    query: Query,
    id_column,
    limit: int,
    cursor: Optional[int] = None,
    time_column=None,
) -> Tuple[List[Any], Optional[int]]:
    """Return ``(rows, next_cursor)`` for one page of ``query``.

    ``id_column`` must be the primary key of the rows being paged. With a
    ``time_column`` the order is ``time desc, id desc`` and the cursor row is
    looked up to anchor the next page; a cursor that no longer exists is
    reported as ``NotFound`` rather than silently ending the list.
    """
    check_limit(limit)

    if cursor is not None:
        if time_column is None:
            query = query.filter(id_column < cursor)
        else:
            exists = query.session.query(id_column).filter(id_column == cursor).first()
            if exists is None:
                raise NotFound("Cursor no longer exists")
            anchor = select(time_column).where(id_column == cursor).correlate(None).scalar_subquery()
            query = query.filter(
                or_(time_column < anchor, and_(time_column == anchor, id_column < cursor))
            )

    ordering = [id_column.desc()]
    if time_column is not None:
        ordering.insert(0, time_column.desc())

    rows = query.order_by(*ordering).limit(limit + 1).all()

    next_cursor = None
    if len(rows) > limit:
        rows = rows[:limit]
        next_cursor = _row_id(rows[-1], id_column)
    return rows, next_cursor


def _row_id(row, id_column) -> int:
    # rows are ORM instances keyed by the mapped attribute name
    return getattr(row, id_column.key)
