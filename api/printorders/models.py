from typing import Optional
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field as ORMField

FIELD_TYPES = ("text", "textarea", "number", "date", "checkbox", "select", "radio", "checkbox-group")
CHOICE_FIELD_TYPES = ("select", "radio", "checkbox-group")

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Brand(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    name: str
    slug: str = ORMField(index=True, unique=True)
    logo_url: Optional[str] = None
    website: Optional[str] = None
    active: bool = True
    to_emails_json: str = "[]"
    cc_emails_json: str = "[]"
    bcc_emails_json: str = "[]"
    cc_submitter: bool = False
    created_at: datetime = ORMField(default_factory=utcnow)

class ClinicLocation(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    brand_id: int = ORMField(index=True)
    key: str
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    sort_order: int = 0

class Section(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    brand_id: int = ORMField(index=True)
    title: str
    sort_order: int = 0

class Item(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    section_id: int = ORMField(index=True)
    name: str
    code: Optional[str] = None
    field_type: str = "text"  # text|textarea|number|date|checkbox|select|radio|checkbox-group
    placeholder: Optional[str] = None
    description: Optional[str] = None
    is_required: bool = False
    sample_link: Optional[str] = None
    sort_order: int = 0

class ItemOption(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    item_id: int = ORMField(index=True)
    value: str
    label: Optional[str] = None
    sort_order: int = 0

class Submission(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    brand_id: int = ORMField(index=True)
    ordered_by: str
    email: str
    phone: Optional[str] = None
    bill_to: str
    deliver_to: str
    notes: Optional[str] = None
    items_json: str = "{}"
    custom_quantities_json: str = "{}"
    status: str = "pending"  # pending|completed
    delivery_status: str = "pdf_pending"  # pdf_pending|pdf_failed|email_failed|delivered
    delivery_error: Optional[str] = None
    pdf_key: Optional[str] = None
    pdf_url: Optional[str] = None
    courier: Optional[str] = None
    tracking_link: Optional[str] = None
    dispatch_notes: Optional[str] = None
    dispatch_date: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: datetime = ORMField(default_factory=utcnow)

class UploadedFile(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    filename: str
    original_name: str
    pathname: str
    url: str
    content_type: Optional[str] = None
    size: int = 0
    brand_id: Optional[int] = ORMField(default=None, index=True)
    uploaded_at: datetime = ORMField(default_factory=utcnow)

class AllowedIp(SQLModel, table=True):
    id: Optional[int] = ORMField(default=None, primary_key=True)
    ip_address: str = ORMField(unique=True)
    description: Optional[str] = None
    created_at: datetime = ORMField(default_factory=utcnow)
