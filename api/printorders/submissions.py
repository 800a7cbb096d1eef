"""Order submission pipeline.

``submit_order`` validates and persists; ``deliver_submission`` renders the PDF,
uploads it and emails the brand. Delivery failures never undo the stored
submission: they are logged and recorded in ``delivery_status`` so the admin
view (or the worker) can retry them.
"""
import csv
import logging
from datetime import date, datetime, time, timedelta, timezone
from io import StringIO
from typing import Iterable, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .cache import listing_cache
from .errors import (
    BadRequestError,
    ConflictError,
    InactiveBrandError,
    NotFoundError,
    OrderValidationError,
    PersistenceError,
)
from .forms import BrandForm, build_form_definition
from .models import Brand, Submission, utcnow
from .notifications import send_order_notification
from .pdf import AddressBlock, OrderDocument, OrderLine, format_quantity, render_order_pdf
from .schemas import OrderSubmit, SubmissionComplete
from .storage import put_bytes, delete_object, public_url
from .utils import canonical_json, load_json, timestamp_ms
from .validation import is_blank, resolve_item, resolve_location, validate_order

logger = logging.getLogger(__name__)

FAILED_DELIVERY = ("pdf_failed", "email_failed")
STALE_PENDING_AFTER = timedelta(minutes=10)
CACHE_PREFIX = "submissions:"


def submit_order(session: Session, payload: OrderSubmit) -> Submission:
    brand = session.get(Brand, payload.brand_id)
    if not brand:
        raise NotFoundError("Brand not found.")
    if not brand.active:
        raise InactiveBrandError(f"Form for {brand.name} is not active.")

    form = build_form_definition(session, brand, public=False)
    errors, _ = validate_order(form, payload)
    if errors:
        raise OrderValidationError(errors)

    submission = Submission(
        brand_id=brand.id,
        ordered_by=payload.ordered_by.strip(),
        email=payload.email.strip(),
        phone=(payload.phone or "").strip() or None,
        bill_to=payload.bill_to,
        deliver_to=payload.deliver_to,
        notes=(payload.notes or "").strip() or None,
        items_json=canonical_json(payload.items),
        custom_quantities_json=canonical_json(payload.custom_quantities or {}),
        status="pending",
        delivery_status="pdf_pending",
    )
    try:
        session.add(submission)
        session.commit()
        session.refresh(submission)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("failed to save submission for brand %s", brand.id)
        raise PersistenceError(f"Database error: {exc}")
    logger.info("submission %s saved for brand %s", submission.id, brand.slug)

    deliver_submission(session, submission, brand=brand, form=form)
    listing_cache.invalidate(CACHE_PREFIX)
    return submission


def build_order_document(form: BrandForm, submission: Submission) -> OrderDocument:
    raw_items = load_json(submission.items_json, {})
    customs = {str(k): v for k, v in load_json(submission.custom_quantities_json, {}).items()}
    picked = {}
    for key, value in raw_items.items():
        item = resolve_item(form, key)
        if not item or is_blank(value):
            continue
        custom = customs.get(str(key)) or customs.get(str(item.id)) or customs.get(item.code)
        picked[item.id] = format_quantity(value, custom)
    lines = [
        OrderLine(name=item.name, code=item.code, quantity=picked[item.id])
        for item in form.all_items()
        if item.id in picked
    ]

    def _address(value: str) -> AddressBlock:
        loc = resolve_location(form, value)
        if loc:
            return AddressBlock(name=loc.label, address=loc.address, phone=loc.phone)
        return AddressBlock(name=value or "")

    created = submission.created_at or utcnow()
    return OrderDocument(
        order_number=str(submission.id),
        order_date=created.strftime("%Y-%m-%d %H:%M UTC"),
        brand_name=form.name,
        ordered_by=submission.ordered_by,
        email=submission.email,
        phone=submission.phone or "",
        bill_to=_address(submission.bill_to),
        deliver_to=_address(submission.deliver_to),
        lines=lines,
        notes=submission.notes,
    )


def _save(session: Session, submission: Submission) -> bool:
    try:
        session.add(submission)
        session.commit()
        session.refresh(submission)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("could not record delivery state for submission %s", submission.id)
        return False
    return True


def _record_delivery(session: Session, submission: Submission, status: str, error: Optional[str] = None) -> bool:
    submission.delivery_status = status
    submission.delivery_error = error
    return _save(session, submission)


def deliver_submission(
    session: Session,
    submission: Submission,
    brand: Optional[Brand] = None,
    form: Optional[BrandForm] = None,
) -> Submission:
    brand = brand or session.get(Brand, submission.brand_id)
    if not brand:
        raise NotFoundError("Brand not found.")
    form = form or build_form_definition(session, brand, public=False)
    order = build_order_document(form, submission)

    try:
        pdf_bytes = render_order_pdf(order)
        key = submission.pdf_key or f"submissions/{brand.slug}/{submission.id}-{timestamp_ms()}.pdf"
        put_bytes(key, pdf_bytes, content_type="application/pdf")
    except Exception as exc:
        logger.exception("PDF generation/upload failed for submission %s", submission.id)
        _record_delivery(session, submission, "pdf_failed", str(exc))
        return submission
    submission.pdf_key = key
    submission.pdf_url = public_url(key)
    if not _save(session, submission):
        # row stays pdf_pending; the sweep picks it up
        return submission

    try:
        send_order_notification(brand, submission, order, pdf_bytes)
    except Exception as exc:
        logger.exception("order email failed for submission %s", submission.id)
        _record_delivery(session, submission, "email_failed", str(exc))
        return submission
    _record_delivery(session, submission, "delivered")
    return submission


def retry_delivery(session: Session, submission_id: int) -> Submission:
    submission = get_submission(session, submission_id)
    if submission.delivery_status == "delivered":
        raise ConflictError("Submission was already delivered.")
    deliver_submission(session, submission)
    listing_cache.invalidate(CACHE_PREFIX)
    return submission


def retry_failed_deliveries(session: Session) -> List[Submission]:
    stale = utcnow() - STALE_PENDING_AFTER
    candidates = session.exec(
        select(Submission)
        .where(or_(
            Submission.delivery_status.in_(FAILED_DELIVERY),
            and_(Submission.delivery_status == "pdf_pending", Submission.created_at <= stale),
        ))
        .order_by(Submission.id)
    ).all()
    retried = []
    for submission in candidates:
        deliver_submission(session, submission)
        retried.append(submission)
    if retried:
        listing_cache.invalidate(CACHE_PREFIX)
    return retried


def get_submission(session: Session, submission_id: int) -> Submission:
    submission = session.get(Submission, submission_id)
    if not submission:
        raise NotFoundError("Submission not found.")
    return submission


def mark_complete(session: Session, submission_id: int, payload: SubmissionComplete) -> Submission:
    submission = get_submission(session, submission_id)
    if submission.status == "completed":
        raise ConflictError("Submission is already completed.")
    submission.status = "completed"
    submission.courier = payload.courier
    submission.tracking_link = payload.tracking_link
    submission.dispatch_notes = payload.notes
    submission.dispatch_date = payload.dispatch_date
    submission.completed_at = utcnow()
    session.add(submission)
    session.commit()
    session.refresh(submission)
    listing_cache.invalidate(CACHE_PREFIX)
    return submission


def delete_submissions(session: Session, ids: Iterable[int]) -> int:
    rows = session.exec(select(Submission).where(Submission.id.in_(list(ids)))).all()
    for submission in rows:
        if submission.pdf_key:
            try:
                delete_object(submission.pdf_key)
            except Exception:
                logger.warning("could not delete PDF %s for submission %s", submission.pdf_key, submission.id, exc_info=True)
        session.delete(submission)
    session.commit()
    listing_cache.invalidate(CACHE_PREFIX)
    return len(rows)


def serialize_submission(submission: Submission, brand_name: Optional[str] = None) -> dict:
    return {
        "id": submission.id,
        "brand_id": submission.brand_id,
        "brand_name": brand_name or "Unknown Brand",
        "ordered_by": submission.ordered_by,
        "email": submission.email,
        "phone": submission.phone,
        "bill_to": submission.bill_to,
        "deliver_to": submission.deliver_to,
        "notes": submission.notes,
        "items": load_json(submission.items_json, {}),
        "custom_quantities": load_json(submission.custom_quantities_json, {}),
        "status": submission.status,
        "delivery_status": submission.delivery_status,
        "delivery_error": submission.delivery_error,
        "pdf_url": submission.pdf_url,
        "courier": submission.courier,
        "tracking_link": submission.tracking_link,
        "dispatch_notes": submission.dispatch_notes,
        "dispatch_date": submission.dispatch_date,
        "completed_at": submission.completed_at,
        "created_at": submission.created_at,
    }


def _day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def list_submissions(
    session: Session,
    brand_id: Optional[int] = None,
    status: Optional[str] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
) -> List[dict]:
    """Admin listing, newest first. ``date_from``/``date_to`` are inclusive UTC days."""
    if date_from and date_to and date_from > date_to:
        raise BadRequestError("date_from must not be after date_to.")
    cache_key = f"{CACHE_PREFIX}{brand_id or '*'}:{status or '*'}:{date_from or '*'}:{date_to or '*'}"
    cached = listing_cache.get(cache_key)
    if cached is not None:
        return cached
    stmt = select(Submission, Brand).join(Brand, Brand.id == Submission.brand_id, isouter=True)
    if brand_id:
        stmt = stmt.where(Submission.brand_id == brand_id)
    if status:
        stmt = stmt.where(Submission.status == status)
    if date_from:
        stmt = stmt.where(Submission.created_at >= _day_start(date_from))
    if date_to:
        stmt = stmt.where(Submission.created_at < _day_start(date_to + timedelta(days=1)))
    stmt = stmt.order_by(Submission.created_at.desc(), Submission.id.desc())
    result = [
        serialize_submission(sub, brand.name if brand else None)
        for sub, brand in session.exec(stmt).all()
    ]
    listing_cache.set(cache_key, result)
    return result


CSV_HEADERS = ["Order #", "Brand", "Ordered By", "Email", "Date", "Status", "Delivery", "Order Data"]


def submissions_csv(rows: Iterable[dict]) -> str:
    buf = StringIO()
    writer = csv.writer(buf)
    writer.writerow(CSV_HEADERS)
    for row in rows:
        created = row["created_at"]
        writer.writerow([
            row["id"],
            row["brand_name"],
            row["ordered_by"],
            row["email"],
            created.strftime("%Y-%m-%d %H:%M") if created else "",
            row["status"],
            row["delivery_status"],
            canonical_json(row["items"]),
        ])
    return buf.getvalue()
