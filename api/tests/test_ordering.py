import os

import pytest

from printorders.errors import BadRequestError
from printorders.ordering import move

ADMIN_HEADERS = {"X-Access-Token": os.environ["ADMIN_PASSWORD"]}


def test_move_shifts_neighbours():
    assert move(["a", "b", "c", "d"], 0, 2) == ["b", "c", "a", "d"]
    assert move(["a", "b", "c", "d"], 3, 0) == ["d", "a", "b", "c"]
    assert move(["a", "b"], 1, 1) == ["a", "b"]


def test_move_rejects_out_of_range():
    with pytest.raises(BadRequestError):
        move(["a", "b"], 2, 0)
    with pytest.raises(BadRequestError):
        move(["a", "b"], 0, -1)


def _section_titles(client, brand_id):
    resp = client.get(f"/api/admin/sections?brand_id={brand_id}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    return [(s["title"], s["sort_order"]) for s in resp.json()]


def test_section_order_is_rewritten_as_permutation(client, make_brand):
    ids = make_brand(sections=[("A", []), ("B", []), ("C", [])])
    a, b, c = ids["sections"]
    resp = client.put(
        "/api/admin/sections/order",
        json={"brand_id": ids["brand_id"], "ids": [c, a, b]},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    assert [s["id"] for s in resp.json()] == [c, a, b]
    assert _section_titles(client, ids["brand_id"]) == [("C", 0), ("A", 1), ("B", 2)]

    editor = client.get("/api/admin/brands/focus-radiology/form", headers=ADMIN_HEADERS).json()
    assert [s["title"] for s in editor["sections"]] == ["C", "A", "B"]


def test_section_order_rejects_partial_or_foreign_ids(client, make_brand):
    ids = make_brand(sections=[("A", []), ("B", [])])
    a, b = ids["sections"]
    partial = client.put("/api/admin/sections/order", json={"brand_id": ids["brand_id"], "ids": [b]}, headers=ADMIN_HEADERS)
    assert partial.status_code == 400
    foreign = client.put("/api/admin/sections/order", json={"brand_id": ids["brand_id"], "ids": [b, 999]}, headers=ADMIN_HEADERS)
    assert foreign.status_code == 400
    assert _section_titles(client, ids["brand_id"]) == [("A", 0), ("B", 1)]


def test_item_move_endpoint(client, make_brand):
    ids = make_brand(sections=[("Pads", [{"name": "One", "code": "I1"}, {"name": "Two", "code": "I2"}, {"name": "Three", "code": "I3"}])])
    section_id = ids["sections"][0]
    resp = client.post(
        "/api/admin/items/move",
        json={"section_id": section_id, "from_index": 2, "to_index": 0},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    assert [i["code"] for i in resp.json()] == ["I3", "I1", "I2"]

    listed = client.get(f"/api/admin/items?section_id={section_id}", headers=ADMIN_HEADERS).json()
    assert [(i["code"], i["sort_order"]) for i in listed] == [("I3", 0), ("I1", 1), ("I2", 2)]

    bad = client.post(
        "/api/admin/items/move",
        json={"section_id": section_id, "from_index": 5, "to_index": 0},
        headers=ADMIN_HEADERS,
    )
    assert bad.status_code == 400


def test_item_order_by_ids(client, make_brand):
    ids = make_brand(sections=[("Pads", [{"name": "One", "code": "I1"}, {"name": "Two", "code": "I2"}])])
    section_id = ids["sections"][0]
    resp = client.put(
        "/api/admin/items/order",
        json={"section_id": section_id, "ids": [ids["items"]["I2"], ids["items"]["I1"]]},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 200
    body = client.get("/api/forms/focus-radiology").json()
    assert [i["code"] for i in body["sections"][0]["items"]] == ["I2", "I1"]


def test_create_appends_and_delete_compacts(client, make_brand):
    ids = make_brand(sections=[("A", []), ("B", [])])
    created = client.post("/api/admin/sections", json={"brand_id": ids["brand_id"], "title": "C"}, headers=ADMIN_HEADERS)
    assert created.status_code == 201
    assert created.json()["sort_order"] == 2

    deleted = client.delete(f"/api/admin/sections?id={ids['sections'][0]}", headers=ADMIN_HEADERS)
    assert deleted.status_code == 200
    assert _section_titles(client, ids["brand_id"]) == [("B", 0), ("C", 1)]


def test_item_create_validates_field_type_and_options(client, make_brand):
    ids = make_brand(sections=[("Pads", [{"name": "One", "code": "I1"}])])
    section_id = ids["sections"][0]

    unknown = client.post(
        "/api/admin/items",
        json={"section_id": section_id, "name": "Bad", "field_type": "slider"},
        headers=ADMIN_HEADERS,
    )
    assert unknown.status_code == 400

    no_options = client.post(
        "/api/admin/items",
        json={"section_id": section_id, "name": "Size", "field_type": "select"},
        headers=ADMIN_HEADERS,
    )
    assert no_options.status_code == 400

    created = client.post(
        "/api/admin/items",
        json={
            "section_id": section_id,
            "name": "Size",
            "code": "SIZE",
            "field_type": "select",
            "options": ["50", {"value": "100", "label": "100 sheets"}, "  "],
        },
        headers=ADMIN_HEADERS,
    )
    assert created.status_code == 201
    body = created.json()
    assert body["sort_order"] == 1
    assert body["options"] == [{"value": "50", "label": "50"}, {"value": "100", "label": "100 sheets"}]

    updated = client.put(
        "/api/admin/items",
        json={"id": body["id"], "options": ["A4"], "is_required": True},
        headers=ADMIN_HEADERS,
    )
    assert updated.status_code == 200
    assert updated.json()["options"] == [{"value": "A4", "label": "A4"}]
    assert updated.json()["is_required"] is True


def test_deleting_item_compacts_siblings(client, make_brand):
    ids = make_brand(sections=[("Pads", [{"name": "One", "code": "I1"}, {"name": "Two", "code": "I2"}, {"name": "Three", "code": "I3"}])])
    section_id = ids["sections"][0]
    resp = client.delete(f"/api/admin/items?id={ids['items']['I1']}", headers=ADMIN_HEADERS)
    assert resp.status_code == 200
    listed = client.get(f"/api/admin/items?section_id={section_id}", headers=ADMIN_HEADERS).json()
    assert [(i["code"], i["sort_order"]) for i in listed] == [("I2", 0), ("I3", 1)]


def test_failed_reorder_leaves_sort_order_untouched(client, make_brand, break_commits):
    ids = make_brand(sections=[("A", []), ("B", []), ("C", [])])
    a, b, c = ids["sections"]
    break_commits()
    resp = client.put(
        "/api/admin/sections/order",
        json={"brand_id": ids["brand_id"], "ids": [c, b, a]},
        headers=ADMIN_HEADERS,
    )
    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"].startswith("Could not save the new order")
    assert _section_titles(client, ids["brand_id"]) == [("A", 0), ("B", 1), ("C", 2)]
