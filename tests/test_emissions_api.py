import pytest
from sqlalchemy.exc import OperationalError

from conftest import register, auth_headers
from ecolens.db import crud


def _scan(client, headers, **overrides):
    payload = {
        "objectName": "Coffee cup",
        "category": "beverage",
        "carbonValue": 82.8,
        "carbonFootprint": "82.8g CO₂e",
        "lifecycle": ["Raw materials", "Manufacturing", "Disposal"],
        "explanation": "Paper cup with a plastic lining.",
        "alternatives": [{"name": "Reusable mug", "benefit": "Lasts years", "carbonSavings": "70g"}],
    }
    payload.update(overrides)
    return client.post("/api/emissions", json=payload, headers=headers)


def _stats(client, headers):
    return client.get("/api/auth/me", headers=headers).json()["stats"]


def test_save_emission_updates_stats(client, headers):
    res = _scan(client, headers)

    assert res.status_code == 201
    body = res.json()
    assert body["objectName"] == "Coffee cup"
    assert body["carbonFootprint"] == "82.80g CO₂e"
    assert body["alternatives"] == [{"name": "Reusable mug", "benefit": "Lasts years", "carbonSavings": "70g"}]

    stats = _stats(client, headers)
    assert stats["totalScans"] == 1
    assert stats["totalCO2"] == 82.8
    assert stats["streakDays"] == 1


def test_delete_emission_reverses_stats(client, headers):
    emission_id = _scan(client, headers).json()["id"]

    res = client.delete(f"/api/emissions/{emission_id}", headers=headers)

    assert res.status_code == 200
    assert res.json()["carbonRemoved"] == 82.8
    stats = _stats(client, headers)
    assert stats["totalScans"] == 0
    assert stats["totalCO2"] == 0


def test_quantity_multiplies_impact(client, headers):
    _scan(client, headers, carbonValue=100, quantity=3)

    assert _stats(client, headers)["totalCO2"] == 300


def test_date_is_derived_from_scanned_at(client, headers):
    body = _scan(client, headers, scannedAt="2024-03-15T10:30:00Z").json()

    assert body["date"] == "2024-03-15"
    assert body["scannedAt"] == "2024-03-15T10:30:00Z"


def test_scanned_at_with_offset_is_stored_as_utc(client, headers):
    body = _scan(client, headers, scannedAt="2024-03-15T23:30:00-02:00").json()

    assert body["date"] == "2024-03-16"
    assert body["scannedAt"] == "2024-03-16T01:30:00Z"


def test_category_defaults_to_other(client, headers):
    body = _scan(client, headers, category=None).json()
    assert body["category"] == "other"


def test_invalid_payloads_are_rejected_before_storage(client, headers):
    assert _scan(client, headers, category="spaceship").status_code == 400
    assert _scan(client, headers, carbonValue=-1).status_code == 400
    assert _scan(client, headers, quantity=0).status_code == 400
    assert _scan(client, headers, objectName="x" * 201).status_code == 400

    blank = _scan(client, headers, objectName="   ")
    assert blank.status_code == 400
    assert blank.json() == {"error": "Object name is required"}

    assert _stats(client, headers)["totalScans"] == 0


def test_save_requires_token(client):
    res = _scan(client, {})
    assert res.status_code == 401


def test_delete_unknown_emission_is_not_found(client, headers):
    res = client.delete("/api/emissions/does-not-exist", headers=headers)

    assert res.status_code == 404
    assert res.json() == {"error": "Emission not found"}


def test_cannot_delete_another_users_emission(client, headers):
    emission_id = _scan(client, headers).json()["id"]
    other = auth_headers(register(client, email="bob@ecolens.io", name="Bob")["token"])

    res = client.delete(f"/api/emissions/{emission_id}", headers=other)

    assert res.status_code == 404
    assert _stats(client, headers)["totalScans"] == 1


def test_today_lists_only_todays_scans(client, headers):
    _scan(client, headers, carbonValue=100)
    _scan(client, headers, carbonValue=50, quantity=2)
    _scan(client, headers, scannedAt="2020-01-01T08:00:00Z")

    body = client.get("/api/emissions/today", headers=headers).json()

    assert body["count"] == 2
    assert body["totalCO2"] == 200
    assert len(body["emissions"]) == 2


def test_daily_summary_against_goal(client, headers):
    _scan(client, headers, carbonValue=2000, scannedAt="2024-03-15T10:30:00Z")
    _scan(client, headers, carbonValue=2000, scannedAt="2024-03-15T18:00:00Z")

    body = client.get("/api/emissions/daily", params={"date": "2024-03-15"}, headers=headers).json()

    assert body == {"date": "2024-03-15", "totalCO2": 4000.0, "itemCount": 2,
                    "goal": 8000.0, "percentOfGoal": 50}


def test_recent_is_newest_first_and_limited(client, headers):
    _scan(client, headers, objectName="Old", scannedAt="2024-03-10T10:00:00Z")
    _scan(client, headers, objectName="Middle", scannedAt="2024-03-11T10:00:00Z")
    _scan(client, headers, objectName="New", scannedAt="2024-03-12T10:00:00Z")

    body = client.get("/api/emissions/recent", params={"limit": 2}, headers=headers).json()
    assert [r["itemName"] for r in body] == ["New", "Middle"]
    assert body[0]["impactKg"] == pytest.approx(0.0828)

    fallback = client.get("/api/emissions/recent", params={"limit": "lots"}, headers=headers).json()
    assert len(fallback) == 3


def test_history_groups_by_date(client, headers):
    _scan(client, headers, objectName="Apple", category="food", carbonValue=100)
    _scan(client, headers, objectName="Tea", carbonValue=20)

    body = client.get("/api/emissions/history", params={"days": "nonsense"}, headers=headers).json()

    assert len(body) == 1
    assert body[0]["totalCO2"] == 120
    assert sorted(i["name"] for i in body[0]["items"]) == ["Apple", "Tea"]


def test_breakdown_percentages(client, headers):
    _scan(client, headers, category="food", carbonValue=100)
    _scan(client, headers, category="food", carbonValue=50)
    _scan(client, headers, category="electronics", carbonValue=50)

    body = client.get("/api/emissions/breakdown", headers=headers).json()

    assert [(b["category"], b["percentage"]) for b in body] == [("Food", 75), ("Electronics", 25)]
    assert body[0]["color"] == "#10b981"
    assert body[0]["impactKg"] == 0.15


def test_emission_detail_includes_impact(client, headers):
    emission_id = _scan(client, headers, carbonValue=251).json()["id"]

    body = client.get(f"/api/emissions/{emission_id}", headers=headers).json()

    assert body["impact"]["severity"] == "excellent"
    assert body["equivalents"]["driving"] == {"value": 1.0, "unit": "km"}


def test_dashboard_with_no_scans(client, headers):
    body = client.get("/api/dashboard/stats", params={"period": "weekly"}, headers=headers).json()

    metrics = body["metrics"]
    assert metrics["improvementPercent"] == 0
    assert metrics["totalScans"] == 0
    assert metrics["topCategory"] == "None"
    assert metrics["comparisonText"] == "Start scanning to track progress!"
    assert [p["value"] for p in body["trendData"]] == [0] * 7


def test_dashboard_unknown_period_falls_back_to_weekly(client, headers):
    body = client.get("/api/dashboard/stats", params={"period": "decade"}, headers=headers).json()

    assert body["metrics"]["label"] == "Weekly"
    assert len(body["trendData"]) == 7


def test_dashboard_counts_todays_scan(client, headers):
    _scan(client, headers, objectName="Burger", category="food", carbonValue=3000)

    body = client.get("/api/dashboard/stats", params={"period": "monthly"}, headers=headers).json()

    assert body["metrics"]["totalScans"] == 1
    assert body["metrics"]["footprintKg"] == 3
    assert body["metrics"]["topCategory"] == "Food"
    assert body["metrics"]["topItem"] == "Burger"
    assert [p["label"] for p in body["trendData"]] == ["W1", "W2", "W3", "W4"]
    assert body["trendData"][-1]["value"] == 3


def test_update_preferences(client, headers):
    res = client.put("/api/users/me/preferences", json={"theme": "dark", "dailyCO2Goal": 6000}, headers=headers)

    assert res.status_code == 200
    assert res.json()["preferences"]["theme"] == "dark"
    assert res.json()["dailyCO2Goal"] == 6000

    bad = client.put("/api/users/me/preferences", json={"theme": "neon"}, headers=headers)
    assert bad.status_code == 400


def test_health(client):
    body = client.get("/api/health").json()

    assert body["status"] == "ok"
    assert body["database"] == "ok"


def test_store_failure_is_reported_as_unavailable(client, headers, monkeypatch):
    def locked(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    monkeypatch.setattr(crud, "find_user_by_id", locked)

    res = client.get("/api/emissions/today", headers=headers)

    assert res.status_code == 503
    assert res.json() == {"error": "Database unavailable"}
