import os
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlmodel import SQLModel, Session, create_engine

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("ADMIN_PASSWORD", "admin-test-token")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")

from printorders.main import app  # noqa: E402
from printorders import db as db_module  # noqa: E402
from printorders.db import get_session  # noqa: E402
from printorders import storage as storage_module  # noqa: E402
from printorders import submissions as submissions_module  # noqa: E402
from printorders import files as files_module  # noqa: E402
from printorders import notifications as notifications_module  # noqa: E402
from printorders.cache import listing_cache  # noqa: E402
from printorders.errors import NotFoundError  # noqa: E402
from printorders.models import Brand, ClinicLocation, Item, ItemOption, Section  # noqa: E402
from printorders.routers import brands as brands_router  # noqa: E402
from printorders.routers import files as files_router  # noqa: E402
from printorders.utils import canonical_json  # noqa: E402

ADMIN_HEADERS = {"X-Access-Token": os.environ["ADMIN_PASSWORD"]}


class FakeBucket(dict):
    def __init__(self):
        super().__init__()
        self.content_types: Dict[str, str] = {}
        self.fail_deletes = False
        self.fail_puts = False


@pytest.fixture(scope="session")
def test_engine(tmp_path_factory):
    db_path = tmp_path_factory.mktemp("data") / "test.db"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    return engine


@pytest.fixture
def setup_db(test_engine):
    SQLModel.metadata.drop_all(test_engine)
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture
def mock_storage(monkeypatch) -> FakeBucket:
    store = FakeBucket()

    def fake_put_bytes(key: str, data: bytes, content_type: str = "application/octet-stream"):
        if store.fail_puts:
            raise ConnectionError("storage unavailable")
        store[key] = bytes(data)
        store.content_types[key] = content_type

    def fake_get_blob(key: str):
        if key not in store:
            raise NotFoundError("File not found")
        return store[key], store.content_types.get(key)

    def fake_delete_object(key: str):
        if store.fail_deletes:
            raise ConnectionError("delete failed")
        store.pop(key, None)
        store.content_types.pop(key, None)

    for target in (storage_module, submissions_module, files_module, brands_router, files_router):
        if hasattr(target, "put_bytes"):
            monkeypatch.setattr(target, "put_bytes", fake_put_bytes)
        if hasattr(target, "get_blob"):
            monkeypatch.setattr(target, "get_blob", fake_get_blob)
        if hasattr(target, "delete_object"):
            monkeypatch.setattr(target, "delete_object", fake_delete_object)
    return store


@pytest.fixture
def sent_emails(monkeypatch):
    messages = []

    def fake_send_email(to, subject, text_body, html_body=None, attachments=None, sender_name=None, reply_to=None, cc=None, bcc=None):
        messages.append(
            {
                "to": to,
                "subject": subject,
                "text": text_body,
                "html": html_body,
                "attachments": attachments or [],
                "sender_name": sender_name,
                "reply_to": reply_to,
                "cc": cc or [],
                "bcc": bcc or [],
            }
        )

    monkeypatch.setattr(notifications_module, "send_email", fake_send_email)
    return messages


@pytest.fixture
def client(test_engine, setup_db, mock_storage):
    db_module.engine = test_engine
    listing_cache.invalidate()

    def override_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    listing_cache.invalidate()


@pytest.fixture
def make_brand(test_engine, setup_db):
    """Insert a brand with one location and the given sections directly in the database.

    ``sections`` is a list of ``(title, [item kwargs, ...])``; item kwargs may
    carry ``options`` as a list of values.
    """

    def _make(name="Focus Radiology", slug="focus-radiology", active=True, sections=None, **brand_kwargs):
        if sections is None:
            sections = [("A4 Request Pads", [{"name": "A4 GP Pad", "code": "A4GP", "is_required": True}])]
        brand_kwargs.setdefault("to_emails_json", canonical_json(["orders@focus.example"]))
        with Session(test_engine) as session:
            brand = Brand(name=name, slug=slug, active=active, **brand_kwargs)
            session.add(brand)
            session.flush()
            session.add(ClinicLocation(brand_id=brand.id, key="clinic-1", name="Clinic One", address="1 Main St", phone="555-0100"))
            ids = {"brand_id": brand.id, "sections": [], "items": {}}
            for s_idx, (title, items) in enumerate(sections):
                section = Section(brand_id=brand.id, title=title, sort_order=s_idx)
                session.add(section)
                session.flush()
                ids["sections"].append(section.id)
                for i_idx, item_kwargs in enumerate(items):
                    item_kwargs = dict(item_kwargs)
                    options = item_kwargs.pop("options", [])
                    item = Item(section_id=section.id, sort_order=i_idx, **item_kwargs)
                    session.add(item)
                    session.flush()
                    ids["items"][item_kwargs.get("code") or item_kwargs["name"]] = item.id
                    for o_idx, value in enumerate(options):
                        session.add(ItemOption(item_id=item.id, value=value, label=value.title(), sort_order=o_idx))
            session.commit()
            return ids

    return _make


@pytest.fixture
def break_commits(monkeypatch):
    """Make ``Session.commit`` fail once ``allowed`` commits have gone through.

    The failing commit flushes first so the rollback has real writes to undo.
    """

    def _arm(allowed=0):
        original = Session.commit
        state = {"left": allowed}

        def flaky_commit(self):
            if state["left"] > 0:
                state["left"] -= 1
                return original(self)
            self.flush()
            raise OperationalError("COMMIT", {}, Exception("database is locked"))

        monkeypatch.setattr(Session, "commit", flaky_commit)

    return _arm
