"""Form definitions: the sanitized brand → sections → items → options tree.

Rows are coerced once, here, into typed records. Columns that come back as
``None`` or with the wrong primitive type are replaced with safe defaults so
nothing downstream has to guard against malformed rows.
"""
from typing import Any, List, Optional
from pydantic import BaseModel, field_validator
from sqlmodel import Session, select

from .errors import InactiveBrandError, NotFoundError
from .models import Brand, ClinicLocation, FIELD_TYPES, Item, ItemOption, Section


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _integer(value: Any) -> int:
    if value is None or isinstance(value, bool):
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


class OptionForm(BaseModel):
    value: str
    label: str

    @classmethod
    def from_row(cls, row: ItemOption) -> Optional["OptionForm"]:
        value = _text(row.value).strip()
        if not value:
            return None
        return cls(value=value, label=_text(row.label).strip() or value)


class ItemForm(BaseModel):
    id: int
    name: str
    code: str
    field_type: str
    placeholder: str
    description: str
    is_required: bool
    sample_link: str
    sort_order: int
    options: List[OptionForm] = []

    @field_validator("name", "code", "placeholder", "description", "sample_link", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _text(value)

    @field_validator("id", "sort_order", mode="before")
    @classmethod
    def coerce_int(cls, value):
        return _integer(value)

    @field_validator("is_required", mode="before")
    @classmethod
    def coerce_flag(cls, value):
        return _flag(value)

    @field_validator("field_type", mode="before")
    @classmethod
    def coerce_field_type(cls, value):
        value = _text(value).strip().lower().replace("_", "-")
        if value == "radio-group":
            value = "radio"
        return value if value in FIELD_TYPES else "text"


class SectionForm(BaseModel):
    id: int
    title: str
    sort_order: int
    items: List[ItemForm] = []

    @field_validator("title", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _text(value)

    @field_validator("id", "sort_order", mode="before")
    @classmethod
    def coerce_int(cls, value):
        return _integer(value)


class LocationForm(BaseModel):
    value: str
    label: str
    address: str
    phone: str

    @classmethod
    def from_row(cls, row: ClinicLocation) -> Optional["LocationForm"]:
        key = _text(row.key).strip()
        name = _text(row.name).strip()
        if not key or not name:
            return None
        return cls(value=key, label=name, address=_text(row.address), phone=_text(row.phone))


class BrandForm(BaseModel):
    id: int
    name: str
    slug: str
    logo_url: str
    active: bool
    locations: List[LocationForm] = []
    sections: List[SectionForm] = []

    @field_validator("name", "slug", "logo_url", mode="before")
    @classmethod
    def coerce_text(cls, value):
        return _text(value)

    @field_validator("active", mode="before")
    @classmethod
    def coerce_flag(cls, value):
        return _flag(value)

    def all_items(self) -> List[ItemForm]:
        return [item for section in self.sections for item in section.items]


def get_brand_by_slug(session: Session, slug: str) -> Brand:
    brand = session.exec(select(Brand).where(Brand.slug == slug)).first()
    if not brand:
        raise NotFoundError("Brand not found")
    return brand


def build_form_definition(session: Session, brand: Brand, public: bool = True) -> BrandForm:
    locations = session.exec(
        select(ClinicLocation)
        .where(ClinicLocation.brand_id == brand.id)
        .order_by(ClinicLocation.sort_order, ClinicLocation.id)
    ).all()
    sections = session.exec(
        select(Section).where(Section.brand_id == brand.id).order_by(Section.sort_order, Section.id)
    ).all()
    section_ids = [s.id for s in sections]
    items = []
    if section_ids:
        items = session.exec(
            select(Item).where(Item.section_id.in_(section_ids)).order_by(Item.sort_order, Item.id)
        ).all()
    item_ids = [i.id for i in items]
    options = []
    if item_ids:
        options = session.exec(
            select(ItemOption).where(ItemOption.item_id.in_(item_ids)).order_by(ItemOption.sort_order, ItemOption.id)
        ).all()

    options_by_item = {}
    for opt in options:
        record = OptionForm.from_row(opt)
        if record:
            options_by_item.setdefault(opt.item_id, []).append(record)
    items_by_section = {}
    for item in items:
        items_by_section.setdefault(item.section_id, []).append(
            ItemForm(
                id=item.id,
                name=item.name,
                code=item.code,
                field_type=item.field_type,
                placeholder=item.placeholder,
                description=item.description,
                is_required=item.is_required,
                sample_link=item.sample_link,
                sort_order=item.sort_order,
                options=options_by_item.get(item.id, []),
            )
        )
    section_forms = [
        SectionForm(id=s.id, title=s.title, sort_order=s.sort_order, items=items_by_section.get(s.id, []))
        for s in sections
    ]
    if public:
        section_forms = [s for s in section_forms if s.items]
    return BrandForm(
        id=brand.id,
        name=brand.name,
        slug=brand.slug,
        logo_url=brand.logo_url,
        active=brand.active,
        locations=[loc for loc in (LocationForm.from_row(row) for row in locations) if loc],
        sections=section_forms,
    )


def load_form_definition(session: Session, slug: str, public: bool = True) -> BrandForm:
    brand = get_brand_by_slug(session, slug)
    if public and not brand.active:
        raise InactiveBrandError(f"Form for {brand.name} is not active.")
    return build_form_definition(session, brand, public=public)
