from typing import List, Union
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from ..auth import require_admin_access
from ..db import get_session
from ..models import CHOICE_FIELD_TYPES, FIELD_TYPES, Item, ItemOption, Section
from ..ordering import compact, next_sort_order, reorder_by_ids, reorder_by_move, sibling_items
from ..schemas import ItemCreate, ItemMove, ItemOrder, ItemUpdate, OptionPayload

router = APIRouter(dependencies=[Depends(require_admin_access)])

def _ensure_section(session: Session, section_id: int):
    section = session.get(Section, section_id)
    if not section:
        raise HTTPException(404, "section not found")
    return section

def _check_field_type(field_type: str) -> str:
    if field_type not in FIELD_TYPES:
        raise HTTPException(400, f"field_type must be one of {', '.join(FIELD_TYPES)}")
    return field_type

def _options_for(session: Session, item_id: int):
    return session.exec(
        select(ItemOption).where(ItemOption.item_id == item_id).order_by(ItemOption.sort_order, ItemOption.id)
    ).all()

def _replace_options(session: Session, item_id: int, options: List[Union[OptionPayload, str]]):
    for option in _options_for(session, item_id):
        session.delete(option)
    position = 0
    for entry in options:
        if isinstance(entry, str):
            entry = OptionPayload(value=entry)
        value = entry.value.strip()
        if not value:
            continue
        session.add(ItemOption(item_id=item_id, value=value, label=(entry.label or "").strip() or value, sort_order=position))
        position += 1

def _serialize_item(session: Session, item: Item):
    data = item.model_dump()
    data["options"] = [{"value": o.value, "label": o.label or o.value} for o in _options_for(session, item.id)]
    return data

@router.get("")
def list_items(section_id: int, session: Session = Depends(get_session)):
    _ensure_section(session, section_id)
    return [_serialize_item(session, item) for item in sibling_items(session, section_id)]

@router.post("", status_code=201)
def create_item(payload: ItemCreate, session: Session = Depends(get_session)):
    _ensure_section(session, payload.section_id)
    name = payload.name.strip()
    if not name:
        raise HTTPException(400, "Item name cannot be empty.")
    field_type = _check_field_type(payload.field_type)
    if field_type in CHOICE_FIELD_TYPES and not payload.options:
        raise HTTPException(400, f"{field_type} items need at least one option")
    item = Item(
        section_id=payload.section_id,
        name=name,
        code=(payload.code or "").strip() or None,
        field_type=field_type,
        placeholder=payload.placeholder,
        description=payload.description,
        is_required=payload.is_required,
        sample_link=payload.sample_link,
        sort_order=next_sort_order(session, Item.sort_order, Item.section_id, payload.section_id),
    )
    session.add(item)
    session.flush()
    _replace_options(session, item.id, payload.options)
    session.commit()
    session.refresh(item)
    return _serialize_item(session, item)

@router.put("")
def update_item(payload: ItemUpdate, session: Session = Depends(get_session)):
    item = session.get(Item, payload.id)
    if not item:
        raise HTTPException(404, "item not found")
    data = payload.model_dump(exclude_unset=True, exclude={"id", "options"})
    if "name" in data:
        name = (data.pop("name") or "").strip()
        if not name:
            raise HTTPException(400, "Item name cannot be empty.")
        item.name = name
    if "field_type" in data:
        item.field_type = _check_field_type(data.pop("field_type") or "text")
    if "code" in data:
        item.code = (data.pop("code") or "").strip() or None
    for key, value in data.items():
        setattr(item, key, value if key != "is_required" else bool(value))
    session.add(item)
    if payload.options is not None:
        _replace_options(session, item.id, payload.options)
    session.commit()
    session.refresh(item)
    return _serialize_item(session, item)

@router.delete("")
def delete_item(id: int, session: Session = Depends(get_session)):
    item = session.get(Item, id)
    if not item:
        raise HTTPException(404, "item not found")
    section_id = item.section_id
    for option in _options_for(session, id):
        session.delete(option)
    session.delete(item)
    session.commit()
    compact(session, sibling_items(session, section_id))
    return {"success": True}

@router.put("/order")
def set_item_order(payload: ItemOrder, session: Session = Depends(get_session)):
    _ensure_section(session, payload.section_id)
    return reorder_by_ids(session, sibling_items(session, payload.section_id), payload.ids)

@router.post("/move")
def move_item(payload: ItemMove, session: Session = Depends(get_session)):
    _ensure_section(session, payload.section_id)
    return reorder_by_move(session, sibling_items(session, payload.section_id), payload.from_index, payload.to_index)
