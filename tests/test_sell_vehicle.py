from datetime import datetime

import pytest
from bson import ObjectId

SUBMISSION = {
    "name": "Asha Rao",
    "email": "asha@dealer.in",
    "phone": "9876543210",
    "vehicleBrand": "Maruti",
    "vehicleModel": "Swift",
    "year": 2018,
    "kmDriven": 42000,
    "expectedPrice": 450000,
    "condition": "excellent",
}


@pytest.fixture
def submit(client, auth_headers):
    def _submit(headers=None, **overrides):
        return client.post("/api/sell-vehicle/submit", json={**SUBMISSION, **overrides}, headers=headers or auth_headers)
    return _submit


def test_submit_vehicle(submit, user):
    resp = submit()
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"].startswith("Vehicle submission received successfully")
    sale = body["sellVehicle"]
    assert sale["status"] == "pending"
    assert sale["userId"] == user["_id"]
    assert sale["condition"] == "excellent"
    assert sale["description"] == ""


def test_submit_defaults_condition(submit):
    resp = submit(condition=None)
    assert resp.status_code == 201
    assert resp.json()["sellVehicle"]["condition"] == "good"


def test_submit_requires_user(client, db):
    resp = client.post("/api/sell-vehicle/submit", json=SUBMISSION)
    assert resp.status_code == 401


def test_submit_lists_missing_fields(submit):
    resp = submit(vehicleModel="", expectedPrice=None)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Missing required fields: vehicleModel, expectedPrice"


def test_submit_allows_zero_km(submit):
    assert submit(kmDriven=0).status_code == 201


@pytest.mark.parametrize("overrides, message", [
    ({"email": "asha.dealer.in"}, "Invalid email format"),
    ({"phone": "98765 43210"}, "Phone number must be 10 digits"),
    ({"kmDriven": -1}, "Kilometers driven cannot be negative"),
    ({"expectedPrice": 999}, "Expected price must be at least ₹1000"),
    ({"condition": "mint"}, "Invalid condition"),
])
def test_submit_rejects_invalid_values(submit, db, overrides, message):
    resp = submit(**overrides)
    assert resp.status_code == 400
    assert resp.json()["message"] == message
    assert db["sellvehicle"].count_documents({}) == 0


@pytest.mark.parametrize("year", [1980, datetime.now().year + 1])
def test_submit_rejects_year_out_of_range(submit, year):
    resp = submit(year=year)
    assert resp.status_code == 400
    assert resp.json()["message"] == f"Year must be between 1990 and {datetime.now().year}"


def test_list_all_requires_user(client, db):
    assert client.get("/api/sell-vehicle/all").status_code == 401


def test_list_all(client, submit, auth_headers, other_user):
    submit()
    submit(headers={"user-id": other_user["_id"]})
    resp = client.get("/api/sell-vehicle/all", headers=auth_headers)
    assert resp.status_code == 200
    assert len(resp.json()["sellVehicles"]) == 2


def test_list_user_submissions(client, submit, user, auth_headers, other_user):
    submit()
    submit(headers={"user-id": other_user["_id"]})

    resp = client.get(f"/api/sell-vehicle/user/{user['_id']}", headers=auth_headers)
    assert resp.status_code == 200
    sales = resp.json()["sellVehicles"]
    assert [s["userId"] for s in sales] == [user["_id"]]

    forbidden = client.get(f"/api/sell-vehicle/user/{other_user['_id']}", headers=auth_headers)
    assert forbidden.status_code == 403


def test_list_sold_vehicles(client, submit, user, auth_headers):
    sold_id = submit().json()["sellVehicle"]["_id"]
    submit(vehicleModel="Baleno")
    client.put(f"/api/sell-vehicle/{sold_id}/status", json={"status": "sold"}, headers=auth_headers)

    resp = client.get(f"/api/sell-vehicle/user/{user['_id']}/sold", headers=auth_headers)
    assert resp.status_code == 200
    sold = resp.json()["soldVehicles"]
    assert [s["_id"] for s in sold] == [sold_id]


def test_get_submission_is_public(client, submit):
    sale_id = submit().json()["sellVehicle"]["_id"]
    resp = client.get(f"/api/sell-vehicle/{sale_id}")
    assert resp.status_code == 200
    assert resp.json()["sellVehicle"]["vehicleModel"] == "Swift"


def test_get_unknown_submission(client, db):
    resp = client.get(f"/api/sell-vehicle/{ObjectId()}")
    assert resp.status_code == 404
    assert resp.json()["message"] == "Vehicle submission not found"


def test_update_status(client, submit, auth_headers):
    sale_id = submit().json()["sellVehicle"]["_id"]
    resp = client.put(f"/api/sell-vehicle/{sale_id}/status", json={"status": "evaluated"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["sellVehicle"]["status"] == "evaluated"


def test_update_status_rejects_unknown_value(client, submit, auth_headers):
    sale_id = submit().json()["sellVehicle"]["_id"]
    resp = client.put(f"/api/sell-vehicle/{sale_id}/status", json={"status": "archived"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["message"] == "Invalid status"


def test_delete_submission(client, db, submit, auth_headers):
    sale_id = submit().json()["sellVehicle"]["_id"]
    resp = client.delete(f"/api/sell-vehicle/{sale_id}", headers=auth_headers)
    assert resp.status_code == 200
    assert db["sellvehicle"].count_documents({}) == 0

    again = client.delete(f"/api/sell-vehicle/{sale_id}", headers=auth_headers)
    assert again.status_code == 404
