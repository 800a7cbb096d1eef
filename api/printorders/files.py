import logging
from typing import Iterable, List, Optional

from sqlmodel import Session, select

from .errors import BadRequestError, NotFoundError
from .models import Brand, Item, UploadedFile
from .storage import put_bytes, delete_object, public_url
from .utils import safe_filename, timestamp_ms

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ("application/pdf", "image/png", "image/jpeg", "image/svg+xml")


def store_upload(
    session: Session,
    original_name: str,
    data: bytes,
    content_type: Optional[str],
    brand_id: Optional[int] = None,
) -> UploadedFile:
    content_type = (content_type or "").split(";", 1)[0].strip().lower()
    if content_type == "image/jpg":
        content_type = "image/jpeg"
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise BadRequestError(f"File type {content_type or 'unknown'} is not allowed.")
    if brand_id is not None and not session.get(Brand, brand_id):
        raise NotFoundError("Brand not found.")
    filename = f"{timestamp_ms()}-{safe_filename(original_name)}"
    key = f"uploads/{filename}"
    put_bytes(key, data, content_type=content_type)
    record = UploadedFile(
        filename=filename,
        original_name=original_name or filename,
        pathname=key,
        url=public_url(key),
        content_type=content_type,
        size=len(data),
        brand_id=brand_id,
    )
    session.add(record)
    session.commit()
    session.refresh(record)
    logger.info("stored upload %s (%d bytes)", key, record.size)
    return record


def list_files(session: Session, brand_id: Optional[int] = None, shared: bool = False) -> List[UploadedFile]:
    stmt = select(UploadedFile)
    if shared:
        stmt = stmt.where(UploadedFile.brand_id == None)  # noqa: E711
    elif brand_id is not None:
        stmt = stmt.where(UploadedFile.brand_id == brand_id)
    return session.exec(stmt.order_by(UploadedFile.uploaded_at.desc(), UploadedFile.id.desc())).all()


def delete_files(session: Session, ids: Iterable[int]) -> int:
    rows = session.exec(select(UploadedFile).where(UploadedFile.id.in_(list(ids)))).all()
    for record in rows:
        try:
            delete_object(record.pathname)
        except Exception:
            # the row goes regardless; an orphaned blob is preferred over an orphaned row
            logger.warning("blob delete failed for %s (file %s)", record.pathname, record.id, exc_info=True)
        session.delete(record)
    session.commit()
    return len(rows)


def auto_assign_samples(session: Session) -> dict:
    """Link unassigned items to the first PDF whose name starts with the item code."""
    items = session.exec(select(Item).order_by(Item.id)).all()
    files = session.exec(select(UploadedFile).order_by(UploadedFile.uploaded_at, UploadedFile.id)).all()
    pdfs = [
        f for f in files
        if (f.content_type or "").lower() == "application/pdf" or (f.original_name or "").lower().endswith(".pdf")
    ]
    matched_files = set()
    assigned = []
    for item in items:
        code = (item.code or "").strip().lower()
        if not code or (item.sample_link or "").strip():
            continue
        match = next((f for f in pdfs if (f.original_name or "").lower().startswith(code)), None)
        if not match:
            continue
        item.sample_link = match.url
        session.add(item)
        matched_files.add(match.id)
        assigned.append({"item_id": item.id, "code": item.code, "file_id": match.id, "url": match.url})
    session.commit()

    unmatched = [f.original_name for f in pdfs if f.id not in matched_files]
    if assigned:
        message = f"{len(assigned)} PDF(s) were successfully assigned."
        if unmatched:
            message += f" The following files could not be matched: {', '.join(unmatched)}."
    elif unmatched:
        message = f"No items matched. The following files could not be matched: {', '.join(unmatched)}."
    else:
        message = "No new PDFs found to assign."
    return {"success": True, "assigned": assigned, "unmatched_files": unmatched, "message": message}
