import logging
from typing import List, Sequence, TypeVar
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .errors import BadRequestError, PersistenceError
from .models import Item, Section

logger = logging.getLogger(__name__)

T = TypeVar("T")


def move(seq: Sequence[T], from_index: int, to_index: int) -> List[T]:
    """Return a copy of ``seq`` with one element moved from one index to another."""
    size = len(seq)
    if not (0 <= from_index < size) or not (0 <= to_index < size):
        raise BadRequestError(f"move {from_index} -> {to_index} out of range for {size} entries")
    result = list(seq)
    result.insert(to_index, result.pop(from_index))
    return result


def next_sort_order(session: Session, column, parent_column, parent_id: int) -> int:
    current = session.exec(select(func.max(column)).where(parent_column == parent_id)).first()
    return 0 if current is None else int(current) + 1


def apply_order(session: Session, rows: Sequence) -> List:
    # one commit for the whole sibling set
    try:
        for index, row in enumerate(rows):
            if row.sort_order != index:
                row.sort_order = index
                session.add(row)
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("reorder failed; sort_order left unchanged")
        raise PersistenceError(f"Could not save the new order: {exc}")
    for row in rows:
        session.refresh(row)
    return list(rows)


def sibling_sections(session: Session, brand_id: int) -> List[Section]:
    return list(session.exec(
        select(Section).where(Section.brand_id == brand_id).order_by(Section.sort_order, Section.id)
    ).all())


def sibling_items(session: Session, section_id: int) -> List[Item]:
    return list(session.exec(
        select(Item).where(Item.section_id == section_id).order_by(Item.sort_order, Item.id)
    ).all())


def reorder_by_ids(session: Session, siblings: Sequence, ids: Sequence[int]) -> List:
    by_id = {row.id: row for row in siblings}
    if len(ids) != len(by_id) or set(ids) != set(by_id):
        raise BadRequestError("ids must list every sibling exactly once")
    return apply_order(session, [by_id[i] for i in ids])


def reorder_by_move(session: Session, siblings: Sequence, from_index: int, to_index: int) -> List:
    return apply_order(session, move(siblings, from_index, to_index))


def compact(session: Session, siblings: Sequence) -> List:
    return apply_order(session, siblings)
