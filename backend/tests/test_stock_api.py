import pytest


def _add(client, user, payload, **overrides):
    body = {**payload, **overrides}
    return client.post("/api/stocks/add", json=body, headers=user["headers"])


def _list(client, user):
    r = client.get("/api/stocks/", headers=user["headers"])
    assert r.status_code == 200
    return r.json()


# ---------- AUTH ----------
@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer not-a-real-token"},
        {"Authorization": "Basic dXNlcjpwYXNz"},
    ],
)
def test_every_endpoint_requires_valid_bearer(client, alice, stock_payload, headers):
    assert client.post("/api/stocks/add", json=stock_payload, headers=headers).status_code == 401
    assert client.get("/api/stocks/", headers=headers).status_code == 401
    assert client.get("/api/stocks/filter?year=2024", headers=headers).status_code == 401
    r = client.put("/api/stocks/update-sales/abc", json={"quantitySold": 1}, headers=headers)
    assert r.status_code == 401

    # rien n'a été écrit
    assert _list(client, alice) == []


def test_health_is_public(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


# ---------- ADD / LIST ----------
def test_add_then_list_round_trip(client, alice, stock_payload):
    r = _add(client, alice, stock_payload)
    assert r.status_code == 201
    assert r.json() == {"message": "Stock added successfully"}

    rows = _list(client, alice)
    assert len(rows) == 1
    row = rows[0]

    for key in ("itemName", "quantityReceived", "unitPrice", "sellingPrice", "week", "year"):
        assert row[key] == stock_payload[key]
    assert row["quantitySold"] == 0
    assert row["ownerId"] == alice["id"]
    assert row["id"]


def test_prices_round_trip_without_rounding(client, alice, stock_payload):
    _add(client, alice, stock_payload, unitPrice=2.555, sellingPrice=0.125)
    row = _list(client, alice)[0]

    assert row["unitPrice"] == 2.555
    assert row["sellingPrice"] == 0.125

    r = client.put(
        f"/api/stocks/update-sales/{row['id']}",
        json={"quantitySold": 1, "unitPrice": 3.0075, "sellingPrice": 4.999},
        headers=alice["headers"],
    )
    assert r.status_code == 200
    assert r.json()["stock"]["unitPrice"] == 3.0075
    assert _list(client, alice)[0]["sellingPrice"] == 4.999


def test_add_stores_timestamps_with_fixed_offset(client, alice, stock_payload):
    _add(client, alice, stock_payload, updatedAt="2024-03-15T20:00:00")
    row = _list(client, alice)[0]

    assert row["createdAt"] == "2024-03-15T15:30:00.000+05:30"
    # naïf = UTC
    assert row["updatedAt"] == "2024-03-16T01:30:00.000+05:30"


def test_add_ignores_owner_from_body(client, alice, bob, stock_payload):
    r = _add(client, alice, stock_payload, ownerId=bob["id"], userId=bob["id"])
    assert r.status_code == 201

    assert _list(client, bob) == []
    assert _list(client, alice)[0]["ownerId"] == alice["id"]


@pytest.mark.parametrize("missing", ["itemName", "quantityReceived", "unitPrice", "week", "year", "createdAt"])
def test_add_rejects_missing_required_field(client, alice, stock_payload, missing):
    body = {k: v for k, v in stock_payload.items() if k != missing}
    r = client.post("/api/stocks/add", json=body, headers=alice["headers"])

    assert r.status_code == 400
    assert r.json()["detail"] == "Validation error"
    assert _list(client, alice) == []


@pytest.mark.parametrize(
    "overrides",
    [
        {"itemName": ""},
        {"quantityReceived": -1},
        {"week": 0},
        {"week": 54},
        {"createdAt": "not a date"},
        {"quantitySold": 101},
    ],
)
def test_add_rejects_invalid_values(client, alice, stock_payload, overrides):
    r = _add(client, alice, stock_payload, **overrides)
    assert r.status_code == 400
    assert _list(client, alice) == []


def test_selling_price_is_optional(client, alice, stock_payload):
    body = {k: v for k, v in stock_payload.items() if k != "sellingPrice"}
    r = client.post("/api/stocks/add", json=body, headers=alice["headers"])

    assert r.status_code == 201
    assert _list(client, alice)[0]["sellingPrice"] is None


def test_list_only_returns_callers_entries(client, alice, bob, stock_payload):
    _add(client, alice, stock_payload, itemName="Farine")
    _add(client, alice, stock_payload, itemName="Sucre")
    _add(client, bob, stock_payload, itemName="Huile")

    alice_rows = _list(client, alice)
    bob_rows = _list(client, bob)

    assert sorted(r["itemName"] for r in alice_rows) == ["Farine", "Sucre"]
    assert {r["ownerId"] for r in alice_rows} == {alice["id"]}
    assert [r["itemName"] for r in bob_rows] == ["Huile"]


# ---------- UPDATE SALES ----------
def test_update_sales_applies_fields_and_stamps_updated_at(client, alice, stock_payload):
    _add(client, alice, stock_payload)
    before = _list(client, alice)[0]

    r = client.put(
        f"/api/stocks/update-sales/{before['id']}",
        json={"quantitySold": 40, "unitPrice": 2.75, "sellingPrice": 4},
        headers=alice["headers"],
    )

    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "Stock updated successfully"
    stock = body["stock"]
    assert stock["id"] == before["id"]
    assert stock["quantitySold"] == 40
    assert stock["unitPrice"] == 2.75
    assert stock["sellingPrice"] == 4
    assert stock["createdAt"] == before["createdAt"]
    assert stock["updatedAt"] != before["updatedAt"]
    assert stock["updatedAt"].endswith("+05:30")


def test_update_sales_keeps_prices_not_sent(client, alice, stock_payload):
    _add(client, alice, stock_payload)
    stock_id = _list(client, alice)[0]["id"]

    r = client.put(f"/api/stocks/update-sales/{stock_id}", json={"quantitySold": 5}, headers=alice["headers"])

    assert r.status_code == 200
    stock = r.json()["stock"]
    assert stock["unitPrice"] == 2.5
    assert stock["sellingPrice"] == 3.75


def test_update_sales_ignores_non_sales_fields(client, alice, stock_payload):
    _add(client, alice, stock_payload)
    stock_id = _list(client, alice)[0]["id"]

    r = client.put(
        f"/api/stocks/update-sales/{stock_id}",
        json={"quantitySold": 5, "itemName": "Autre", "quantityReceived": 1, "week": 40},
        headers=alice["headers"],
    )

    assert r.status_code == 200
    row = _list(client, alice)[0]
    assert row["itemName"] == "Riz Parfumé"
    assert row["quantityReceived"] == 100
    assert row["week"] == 11


def test_overselling_is_rejected_and_store_untouched(client, alice, stock_payload):
    """
    GIVEN
    - une entrée de 100 unités reçues, 0 vendues

    WHEN
    - update-sales avec quantitySold=101 (et un nouveau prix)

    THEN
    - 400, et l'entrée stockée est strictement identique (prix compris)
    """
    _add(client, alice, stock_payload)
    before = _list(client, alice)[0]

    r = client.put(
        f"/api/stocks/update-sales/{before['id']}",
        json={"quantitySold": 101, "unitPrice": 9.99},
        headers=alice["headers"],
    )

    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot sell more than received quantity"
    assert _list(client, alice)[0] == before


def test_selling_everything_received_is_allowed(client, alice, stock_payload):
    _add(client, alice, stock_payload)
    stock_id = _list(client, alice)[0]["id"]

    r = client.put(f"/api/stocks/update-sales/{stock_id}", json={"quantitySold": 100}, headers=alice["headers"])
    assert r.status_code == 200


def test_update_sales_unknown_id_is_404(client, alice):
    r = client.put("/api/stocks/update-sales/does-not-exist", json={"quantitySold": 1}, headers=alice["headers"])
    assert r.status_code == 404
    assert r.json()["detail"] == "Stock not found"


def test_update_sales_on_someone_elses_entry_is_404(client, alice, bob, stock_payload):
    _add(client, alice, stock_payload)
    before = _list(client, alice)[0]

    r = client.put(
        f"/api/stocks/update-sales/{before['id']}",
        json={"quantitySold": 3},
        headers=bob["headers"],
    )

    assert r.status_code == 404
    assert _list(client, alice)[0] == before


def test_update_sales_requires_quantity_sold(client, alice, stock_payload):
    _add(client, alice, stock_payload)
    stock_id = _list(client, alice)[0]["id"]

    r = client.put(f"/api/stocks/update-sales/{stock_id}", json={"unitPrice": 3}, headers=alice["headers"])
    assert r.status_code == 400


# ---------- FILTER ----------
@pytest.fixture
def weekly_rows(client, alice, bob, stock_payload):
    for week in (5, 2, 12, 9):
        _add(client, alice, stock_payload, itemName=f"W{week}", week=week)
    _add(client, alice, stock_payload, itemName="OLD", week=5, year=2023)
    _add(client, bob, stock_payload, itemName="BOB", week=5)


def _filter(client, user, query):
    r = client.get(f"/api/stocks/filter?{query}", headers=user["headers"])
    assert r.status_code == 200
    return [row["itemName"] for row in r.json()]


def test_filter_by_year_sorted_by_week(client, alice, weekly_rows):
    assert _filter(client, alice, "year=2024") == ["W2", "W5", "W9", "W12"]


def test_filter_by_exact_week(client, alice, weekly_rows):
    assert _filter(client, alice, "year=2024&week=5") == ["W5"]
    assert _filter(client, alice, "year=2023&week=5") == ["OLD"]


def test_filter_by_inclusive_range(client, alice, weekly_rows):
    assert _filter(client, alice, "year=2024&startWeek=5&endWeek=9") == ["W5", "W9"]


def test_filter_range_takes_precedence_over_week(client, alice, weekly_rows):
    assert _filter(client, alice, "year=2024&week=5&startWeek=9&endWeek=12") == ["W9", "W12"]


def test_filter_half_range_falls_back_to_week(client, alice, weekly_rows):
    assert _filter(client, alice, "year=2024&week=5&startWeek=9") == ["W5"]
    assert _filter(client, alice, "year=2024&endWeek=2") == ["W2", "W5", "W9", "W12"]


def test_filter_never_returns_other_users_entries(client, alice, bob, weekly_rows):
    assert _filter(client, bob, "year=2024") == ["BOB"]
    assert "BOB" not in _filter(client, alice, "year=2024&week=5")


def test_filter_requires_year(client, alice, weekly_rows):
    r = client.get("/api/stocks/filter?week=5", headers=alice["headers"])
    assert r.status_code == 400
