import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select
from ..auth import require_admin_access
from ..cache import listing_cache
from ..db import get_session
from ..forms import build_form_definition, get_brand_by_slug
from ..models import Brand, ClinicLocation, Item, ItemOption, Section, Submission, UploadedFile
from ..schemas import BrandCreate, BrandUpdate, LocationPayload, ScrapeRequest
from ..scraping import scrape_brand_site
from ..storage import delete_object
from ..submissions import CACHE_PREFIX
from ..utils import canonical_json, load_json, slugify

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin_access)])

def _serialize_brand(session: Session, brand: Brand):
    locations = session.exec(
        select(ClinicLocation).where(ClinicLocation.brand_id == brand.id).order_by(ClinicLocation.sort_order, ClinicLocation.id)
    ).all()
    return {
        "id": brand.id,
        "name": brand.name,
        "slug": brand.slug,
        "logo_url": brand.logo_url,
        "website": brand.website,
        "active": brand.active,
        "to_emails": load_json(brand.to_emails_json, []),
        "cc_emails": load_json(brand.cc_emails_json, []),
        "bcc_emails": load_json(brand.bcc_emails_json, []),
        "cc_submitter": brand.cc_submitter,
        "created_at": brand.created_at,
        "locations": [
            {"key": loc.key, "name": loc.name, "address": loc.address, "phone": loc.phone}
            for loc in locations
        ],
    }

def _slug_for(session: Session, name: str, brand_id=None) -> str:
    slug = slugify(name)
    if not slug:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Brand name must contain letters or digits")
    existing = session.exec(select(Brand).where(Brand.slug == slug)).first()
    if existing and existing.id != brand_id:
        raise HTTPException(status.HTTP_409_CONFLICT, "A brand with this name already exists.")
    return slug

def _replace_locations(session: Session, brand_id: int, locations: List[LocationPayload]):
    for loc in session.exec(select(ClinicLocation).where(ClinicLocation.brand_id == brand_id)).all():
        session.delete(loc)
    seen = set()
    for idx, loc in enumerate(locations):
        key = (loc.key or "").strip() or slugify(loc.name) or f"location-{idx + 1}"
        if key in seen:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, f"duplicate location key {key}")
        seen.add(key)
        session.add(ClinicLocation(
            brand_id=brand_id,
            key=key,
            name=loc.name,
            address=loc.address,
            phone=loc.phone,
            sort_order=idx,
        ))

@router.get("")
def list_brands(session: Session = Depends(get_session)):
    brands = session.exec(select(Brand).order_by(Brand.name)).all()
    return [_serialize_brand(session, b) for b in brands]

@router.post("", status_code=201)
def create_brand(payload: BrandCreate, session: Session = Depends(get_session)):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, "Brand name is required")
    brand = Brand(
        name=name,
        slug=_slug_for(session, name),
        logo_url=payload.logo_url,
        website=payload.website,
        active=payload.active,
        to_emails_json=canonical_json(payload.to_emails),
        cc_emails_json=canonical_json(payload.cc_emails),
        bcc_emails_json=canonical_json(payload.bcc_emails),
        cc_submitter=payload.cc_submitter,
    )
    session.add(brand)
    session.flush()
    _replace_locations(session, brand.id, payload.locations)
    session.commit()
    session.refresh(brand)
    return _serialize_brand(session, brand)

@router.put("")
def update_brand(payload: BrandUpdate, session: Session = Depends(get_session)):
    brand = session.get(Brand, payload.id)
    if not brand:
        raise HTTPException(404, "brand not found")
    data = payload.model_dump(exclude_unset=True, exclude={"id", "locations"})
    if "name" in data:
        name = (data.pop("name") or "").strip()
        if not name:
            raise HTTPException(status.HTTP_400_BAD_REQUEST, "Brand name is required")
        brand.name = name
        brand.slug = _slug_for(session, name, brand_id=brand.id)
    for field in ("to_emails", "cc_emails", "bcc_emails"):
        if field in data:
            setattr(brand, f"{field}_json", canonical_json(data.pop(field) or []))
    for key, value in data.items():
        if value is not None or key in ("logo_url", "website"):
            setattr(brand, key, value)
    session.add(brand)
    if payload.locations is not None:
        _replace_locations(session, brand.id, payload.locations)
    session.commit()
    session.refresh(brand)
    listing_cache.invalidate(CACHE_PREFIX)
    return _serialize_brand(session, brand)

def _delete_blob(key: str):
    try:
        delete_object(key)
    except Exception:
        logger.warning("blob delete failed for %s", key, exc_info=True)

@router.delete("")
def delete_brand(id: int, session: Session = Depends(get_session)):
    brand = session.get(Brand, id)
    if not brand:
        raise HTTPException(404, "brand not found")
    sections = session.exec(select(Section).where(Section.brand_id == id)).all()
    for section in sections:
        items = session.exec(select(Item).where(Item.section_id == section.id)).all()
        for item in items:
            for option in session.exec(select(ItemOption).where(ItemOption.item_id == item.id)).all():
                session.delete(option)
            session.delete(item)
        session.delete(section)
    for loc in session.exec(select(ClinicLocation).where(ClinicLocation.brand_id == id)).all():
        session.delete(loc)
    for submission in session.exec(select(Submission).where(Submission.brand_id == id)).all():
        if submission.pdf_key:
            _delete_blob(submission.pdf_key)
        session.delete(submission)
    for record in session.exec(select(UploadedFile).where(UploadedFile.brand_id == id)).all():
        _delete_blob(record.pathname)
        session.delete(record)
    session.delete(brand)
    session.commit()
    listing_cache.invalidate()
    return {"success": True}

@router.get("/{slug}/form")
def get_editor_form(slug: str, session: Session = Depends(get_session)):
    brand = get_brand_by_slug(session, slug)
    return build_form_definition(session, brand, public=False)

@router.post("/scrape")
def scrape_brand(payload: ScrapeRequest):
    return scrape_brand_site(payload.url)
