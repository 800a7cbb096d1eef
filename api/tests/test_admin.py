import os

from sqlalchemy.exc import OperationalError

from printorders import auth, config

ADMIN_HEADERS = {"X-Access-Token": os.environ["ADMIN_PASSWORD"]}


def test_admin_routes_require_credentials(client):
    assert client.get("/api/admin/brands").status_code == 401
    wrong = client.get("/api/admin/brands", headers={"X-Access-Token": "nope"})
    assert wrong.status_code == 403
    assert wrong.json() == {"success": False, "error": "Invalid access token"}
    assert client.get("/api/admin/brands", headers=ADMIN_HEADERS).status_code == 200


def test_login_sets_signed_cookie(client):
    bad = client.post("/api/admin/login", json={"password": "guess"})
    assert bad.status_code == 401

    resp = client.post("/api/admin/login", json={"password": os.environ["ADMIN_PASSWORD"]})
    assert resp.status_code == 200
    assert "admin-auth" in resp.cookies
    assert client.get("/api/admin/brands").status_code == 200

    out = client.post("/api/admin/logout")
    assert out.status_code == 200
    assert "admin-auth=" in out.headers["set-cookie"]


def test_tampered_cookie_is_ignored(client):
    client.cookies.set("admin-auth", "forged-value")
    assert client.get("/api/admin/brands").status_code == 401


def test_brand_crud(client):
    created = client.post(
        "/api/admin/brands",
        json={
            "name": "Focus Radiology",
            "website": "https://focus.example",
            "to_emails": ["orders@focus.example", " "],
            "locations": [{"name": "Clinic One", "address": "1 Main St"}, {"key": "north", "name": "North"}],
        },
        headers=ADMIN_HEADERS,
    )
    assert created.status_code == 201
    brand = created.json()
    assert brand["slug"] == "focus-radiology"
    assert brand["to_emails"] == ["orders@focus.example"]
    assert [loc["key"] for loc in brand["locations"]] == ["clinic-one", "north"]

    dup = client.post("/api/admin/brands", json={"name": "focus radiology"}, headers=ADMIN_HEADERS)
    assert dup.status_code == 409

    bad_email = client.post("/api/admin/brands", json={"name": "Other", "to_emails": ["nope"]}, headers=ADMIN_HEADERS)
    assert bad_email.status_code == 422

    updated = client.put(
        "/api/admin/brands",
        json={"id": brand["id"], "name": "Focus Imaging", "website": None, "cc_submitter": True},
        headers=ADMIN_HEADERS,
    )
    assert updated.status_code == 200
    assert updated.json()["slug"] == "focus-imaging"
    assert updated.json()["website"] is None
    assert updated.json()["cc_submitter"] is True
    assert updated.json()["locations"] == brand["locations"]

    listed = client.get("/api/admin/brands", headers=ADMIN_HEADERS).json()
    assert [b["name"] for b in listed] == ["Focus Imaging"]

    assert client.get("/api/forms/focus-imaging").status_code == 200
    assert client.get("/api/forms/focus-radiology").status_code == 404


def test_brand_delete_cascades(client, make_brand, mock_storage, sent_emails):
    ids = make_brand()
    order = client.post(
        "/api/submit-order",
        json={
            "brandId": ids["brand_id"],
            "orderedBy": "Jane Doe",
            "email": "jane@example.com",
            "billTo": "clinic-1",
            "deliverTo": "clinic-1",
            "items": {"A4GP": "1"},
        },
    )
    assert order.status_code == 200
    upload = client.post(
        "/api/admin/upload",
        files={"file": ("logo.png", b"\x89PNG", "image/png")},
        data={"brand_id": str(ids["brand_id"])},
        headers=ADMIN_HEADERS,
    )
    assert upload.status_code == 201
    assert len(mock_storage) == 2

    resp = client.delete(f"/api/admin/brands?id={ids['brand_id']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    assert mock_storage == {}
    assert client.get("/api/forms/focus-radiology").status_code == 404
    assert client.get("/api/admin/submissions", headers=ADMIN_HEADERS).json() == []
    assert client.get(f"/api/admin/sections?brand_id={ids['brand_id']}", headers=ADMIN_HEADERS).status_code == 404
    assert client.delete(f"/api/admin/brands?id={ids['brand_id']}", headers=ADMIN_HEADERS).status_code == 404


def test_allowed_ip_crud(client):
    created = client.post("/api/admin/allowed-ips", json={"ip_address": " 10.0.0.0/8 ", "description": "office"}, headers=ADMIN_HEADERS)
    assert created.status_code == 201
    entry = created.json()
    assert entry["ip_address"] == "10.0.0.0/8"

    dup = client.post("/api/admin/allowed-ips", json={"ip_address": "10.0.0.0/8"}, headers=ADMIN_HEADERS)
    assert dup.status_code == 409
    invalid = client.post("/api/admin/allowed-ips", json={"ip_address": "not-an-ip"}, headers=ADMIN_HEADERS)
    assert invalid.status_code == 400

    listed = client.get("/api/admin/allowed-ips", headers=ADMIN_HEADERS).json()
    assert [e["ip_address"] for e in listed] == ["10.0.0.0/8"]

    assert client.delete(f"/api/admin/allowed-ips?id={entry['id']}", headers=ADMIN_HEADERS).status_code == 200
    assert client.delete(f"/api/admin/allowed-ips?id={entry['id']}", headers=ADMIN_HEADERS).status_code == 404


def test_allowlist_guards_public_form(client, make_brand, monkeypatch):
    make_brand()
    monkeypatch.setattr(config, "IP_ALLOWLIST_ENABLED", True)

    # empty list lets everyone in
    assert client.get("/api/forms/focus-radiology", headers={"X-Forwarded-For": "192.168.1.5"}).status_code == 200

    client.post("/api/admin/allowed-ips", json={"ip_address": "10.0.0.0/8"}, headers=ADMIN_HEADERS)
    allowed = client.get("/api/forms/focus-radiology", headers={"X-Forwarded-For": "10.1.2.3, 172.16.0.1"})
    assert allowed.status_code == 200
    denied = client.get("/api/forms/focus-radiology", headers={"X-Forwarded-For": "192.168.1.5"})
    assert denied.status_code == 403
    assert denied.json()["error"] == "Access denied"

    monkeypatch.setattr(config, "IP_ALLOWLIST_ENABLED", False)
    assert client.get("/api/forms/focus-radiology", headers={"X-Forwarded-For": "192.168.1.5"}).status_code == 200


def test_allowlist_lookup_failure_fails_closed_unless_configured(client, make_brand, monkeypatch):
    make_brand()
    monkeypatch.setattr(config, "IP_ALLOWLIST_ENABLED", True)

    def broken_lookup(session, ip):
        raise OperationalError("select", {}, Exception("db down"))

    monkeypatch.setattr(auth, "ip_is_allowed", broken_lookup)
    assert client.get("/api/forms/focus-radiology").status_code == 403

    monkeypatch.setattr(config, "IP_ALLOWLIST_FAIL_OPEN", True)
    assert client.get("/api/forms/focus-radiology").status_code == 200
