import math
from datetime import date
from typing import Any, Dict, Optional, Tuple

from .forms import BrandForm, ItemForm
from .schemas import OrderSubmit
from .utils import is_email

OTHER = "other"


def is_blank(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def resolve_item(form: BrandForm, key: str) -> Optional[ItemForm]:
    key = str(key)
    for item in form.all_items():
        if str(item.id) == key:
            return item
    lowered = key.strip().lower()
    for item in form.all_items():
        if item.code and item.code.strip().lower() == lowered:
            return item
    return None


def resolve_location(form: BrandForm, value: str):
    for loc in form.locations:
        if loc.value == value:
            return loc
    return None


def _check_value(item: ItemForm, value: Any, custom: Optional[str]) -> Optional[str]:
    choices = {opt.value for opt in item.options}
    if item.field_type == "number":
        try:
            number = float(str(value).strip())
        except ValueError:
            return "Must be a number."
        if not math.isfinite(number):
            return "Must be a number."
    elif item.field_type == "date":
        try:
            date.fromisoformat(str(value).strip())
        except ValueError:
            return "Must be a date (YYYY-MM-DD)."
    elif item.field_type in ("select", "radio"):
        if isinstance(value, (list, dict)):
            return "Choose a single option."
        if str(value) == OTHER:
            if is_blank(custom):
                return "Enter a custom quantity."
        elif choices and str(value) not in choices:
            return "Choose one of the listed options."
    elif item.field_type == "checkbox-group":
        values = value if isinstance(value, list) else [value]
        unknown = [v for v in values if choices and str(v) not in choices]
        if unknown:
            return "Choose from the listed options."
    return None


def validate_order(form: BrandForm, payload: OrderSubmit) -> Tuple[Dict[str, str], Dict[int, Any]]:
    """Check a submission against the brand's form.

    Returns ``(errors, values)`` where ``errors`` maps field names (``items.<key>``
    for items) to messages and ``values`` maps item id to the non-empty submitted
    value. Validation never touches the database.
    """
    errors: Dict[str, str] = {}
    values: Dict[int, Any] = {}

    if is_blank(payload.ordered_by):
        errors["orderedBy"] = "Name is required."
    if is_blank(payload.email):
        errors["email"] = "Email is required."
    elif not is_email(payload.email):
        errors["email"] = "Enter a valid email address."

    for field, value in (("billTo", payload.bill_to), ("deliverTo", payload.deliver_to)):
        if is_blank(value):
            errors[field] = "Select a location."
        elif form.locations and not resolve_location(form, value):
            errors[field] = "Invalid location."

    customs = {str(k): v for k, v in (payload.custom_quantities or {}).items()}
    for key, value in (payload.items or {}).items():
        item = resolve_item(form, key)
        if not item:
            errors[f"items.{key}"] = "Unknown item."
            continue
        if is_blank(value):
            continue
        custom = customs.get(str(key)) or customs.get(str(item.id)) or customs.get(item.code)
        message = _check_value(item, value, custom)
        if message:
            errors[f"items.{key}"] = message
            continue
        values[item.id] = value

    for item in form.all_items():
        if item.is_required and item.id not in values:
            label = item.code or str(item.id)
            errors.setdefault(f"items.{label}", f"{item.name} is required.")

    if not values and not any(k.startswith("items.") for k in errors):
        errors["items"] = "Your order is empty. Please specify a quantity for at least one item."
    return errors, values
