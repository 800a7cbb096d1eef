from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional, Union
from .utils import is_email


def _check_emails(values):
    cleaned = []
    for value in values or []:
        value = (value or "").strip()
        if not value:
            continue
        if not is_email(value):
            raise ValueError(f"Invalid email format: {value}")
        cleaned.append(value)
    return cleaned


class LocationPayload(BaseModel):
    key: Optional[str] = None
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None

class BrandCreate(BaseModel):
    name: str
    logo_url: Optional[str] = None
    website: Optional[str] = None
    active: bool = True
    to_emails: List[str] = []
    cc_emails: List[str] = []
    bcc_emails: List[str] = []
    cc_submitter: bool = False
    locations: List[LocationPayload] = []

    @field_validator("to_emails", "cc_emails", "bcc_emails")
    @classmethod
    def validate_emails(cls, values):
        return _check_emails(values)

class BrandUpdate(BaseModel):
    id: int
    name: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    active: Optional[bool] = None
    to_emails: Optional[List[str]] = None
    cc_emails: Optional[List[str]] = None
    bcc_emails: Optional[List[str]] = None
    cc_submitter: Optional[bool] = None
    locations: Optional[List[LocationPayload]] = None

    @field_validator("to_emails", "cc_emails", "bcc_emails")
    @classmethod
    def validate_emails(cls, values):
        if values is None:
            return None
        return _check_emails(values)

class ScrapeRequest(BaseModel):
    url: str

class SectionCreate(BaseModel):
    brand_id: int
    title: str

class SectionUpdate(BaseModel):
    id: int
    title: str

class OptionPayload(BaseModel):
    value: str
    label: Optional[str] = None

class ItemCreate(BaseModel):
    section_id: int
    name: str
    code: Optional[str] = None
    field_type: str = "text"
    placeholder: Optional[str] = None
    description: Optional[str] = None
    is_required: bool = False
    sample_link: Optional[str] = None
    options: List[Union[OptionPayload, str]] = []

class ItemUpdate(BaseModel):
    id: int
    name: Optional[str] = None
    code: Optional[str] = None
    field_type: Optional[str] = None
    placeholder: Optional[str] = None
    description: Optional[str] = None
    is_required: Optional[bool] = None
    sample_link: Optional[str] = None
    options: Optional[List[Union[OptionPayload, str]]] = None

class SectionOrder(BaseModel):
    brand_id: int
    ids: List[int]

class ItemOrder(BaseModel):
    section_id: int
    ids: List[int]

class SectionMove(BaseModel):
    brand_id: int
    from_index: int
    to_index: int

class ItemMove(BaseModel):
    section_id: int
    from_index: int
    to_index: int

class OrderSubmit(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    brand_id: int = Field(alias="brandId")
    ordered_by: str = Field(default="", alias="orderedBy")
    email: str = ""
    phone: Optional[str] = None
    bill_to: str = Field(default="", alias="billTo")
    deliver_to: str = Field(default="", alias="deliverTo")
    items: Dict[str, Any] = {}
    custom_quantities: Dict[str, str] = Field(default={}, alias="customQuantities")
    notes: Optional[str] = None

class SubmissionComplete(BaseModel):
    courier: Optional[str] = None
    tracking_link: Optional[str] = None
    notes: Optional[str] = None
    dispatch_date: Optional[str] = None

class IdList(BaseModel):
    ids: List[int]

class AllowedIpCreate(BaseModel):
    ip_address: str
    description: Optional[str] = None

class LoginRequest(BaseModel):
    password: str
