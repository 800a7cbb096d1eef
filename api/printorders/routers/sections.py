from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from ..auth import require_admin_access
from ..db import get_session
from ..models import Brand, Item, ItemOption, Section
from ..ordering import compact, next_sort_order, reorder_by_ids, reorder_by_move, sibling_sections
from ..schemas import SectionCreate, SectionMove, SectionOrder, SectionUpdate

router = APIRouter(dependencies=[Depends(require_admin_access)])

def _ensure_brand(session: Session, brand_id: int):
    brand = session.get(Brand, brand_id)
    if not brand:
        raise HTTPException(404, "brand not found")
    return brand

@router.get("")
def list_sections(brand_id: int, session: Session = Depends(get_session)):
    _ensure_brand(session, brand_id)
    return sibling_sections(session, brand_id)

@router.post("", status_code=201)
def create_section(payload: SectionCreate, session: Session = Depends(get_session)):
    _ensure_brand(session, payload.brand_id)
    title = payload.title.strip()
    if not title:
        raise HTTPException(400, "Section title cannot be empty.")
    section = Section(
        brand_id=payload.brand_id,
        title=title,
        sort_order=next_sort_order(session, Section.sort_order, Section.brand_id, payload.brand_id),
    )
    session.add(section)
    session.commit()
    session.refresh(section)
    return section

@router.put("")
def update_section(payload: SectionUpdate, session: Session = Depends(get_session)):
    section = session.get(Section, payload.id)
    if not section:
        raise HTTPException(404, "section not found")
    title = payload.title.strip()
    if not title:
        raise HTTPException(400, "Section title cannot be empty.")
    section.title = title
    session.add(section)
    session.commit()
    session.refresh(section)
    return section

@router.delete("")
def delete_section(id: int, session: Session = Depends(get_session)):
    section = session.get(Section, id)
    if not section:
        raise HTTPException(404, "section not found")
    brand_id = section.brand_id
    items = session.exec(select(Item).where(Item.section_id == id)).all()
    for item in items:
        for option in session.exec(select(ItemOption).where(ItemOption.item_id == item.id)).all():
            session.delete(option)
        session.delete(item)
    session.delete(section)
    session.commit()
    compact(session, sibling_sections(session, brand_id))
    return {"success": True}

@router.put("/order")
def set_section_order(payload: SectionOrder, session: Session = Depends(get_session)):
    _ensure_brand(session, payload.brand_id)
    return reorder_by_ids(session, sibling_sections(session, payload.brand_id), payload.ids)

@router.post("/move")
def move_section(payload: SectionMove, session: Session = Depends(get_session)):
    _ensure_brand(session, payload.brand_id)
    return reorder_by_move(session, sibling_sections(session, payload.brand_id), payload.from_index, payload.to_index)
