import json, re
from datetime import datetime, timezone
from itsdangerous import URLSafeSerializer, BadSignature
from .config import SECRET_KEY

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

def canonical_json(obj) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))

def load_json(raw, default):
    if not raw:
        return default
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        return default
    return value if isinstance(value, type(default)) else default

def slugify(text: str) -> str:
    if not text:
        return ""
    slug = str(text).lower().strip()
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"[^\w-]+", "", slug)
    slug = re.sub(r"_+", "-", slug)
    slug = re.sub(r"--+", "-", slug)
    return slug.strip("-")

def is_email(value) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value.strip()))

def timestamp_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)

def safe_filename(name: str) -> str:
    base = (name or "file").rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "-", base).strip("-.")
    return cleaned or "file"

def make_token(payload: dict) -> str:
    s = URLSafeSerializer(SECRET_KEY, salt="admin-auth")
    return s.dumps(payload)

def read_token(token: str):
    s = URLSafeSerializer(SECRET_KEY, salt="admin-auth")
    try:
        return s.loads(token)
    except BadSignature:
        return None
