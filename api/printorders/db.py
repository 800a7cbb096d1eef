import logging
from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy import text, inspect
from .config import DATABASE_URL

logger = logging.getLogger(__name__)

engine = create_engine(DATABASE_URL, echo=False, pool_pre_ping=True)

def init_db():
    from .models import Brand, ClinicLocation, Section, Item, ItemOption, Submission, UploadedFile, AllowedIp
    SQLModel.metadata.create_all(engine)
    _ensure_submission_delivery_columns()
    _ensure_brand_slug_unique_index()

def get_session():
    with Session(engine) as session:
        yield session

def _ensure_submission_delivery_columns():
    # submissions created before delivery tracking existed
    inspector = inspect(engine)
    try:
        columns = [col["name"] for col in inspector.get_columns("submission")]
    except Exception:
        return
    missing = [
        (name, ddl)
        for name, ddl in (
            ("delivery_status", "TEXT DEFAULT 'delivered'"),
            ("delivery_error", "TEXT"),
            ("pdf_key", "TEXT"),
        )
        if name not in columns
    ]
    if not missing:
        return
    with engine.begin() as conn:
        for name, ddl in missing:
            conn.execute(text(f"ALTER TABLE submission ADD COLUMN {name} {ddl}"))


def _ensure_brand_slug_unique_index():
    inspector = inspect(engine)
    try:
        indexes = inspector.get_indexes("brand")
    except Exception:
        return
    if any(idx.get("unique") and idx.get("column_names") == ["slug"] for idx in indexes):
        return
    with engine.begin() as conn:
        duplicates = conn.execute(
            text("SELECT slug FROM brand GROUP BY slug HAVING COUNT(*) > 1")
        ).fetchall()
        if duplicates:
            slugs = ", ".join(row[0] for row in duplicates if row[0])
            logger.warning("duplicate brand slugs detected; resolve before enforcing uniqueness: %s", slugs)
            return
        conn.execute(text("CREATE UNIQUE INDEX IF NOT EXISTS uq_brand_slug ON brand(slug)"))
