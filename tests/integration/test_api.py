"""Integration tests for API endpoints"""

import pytest
from datetime import date
from fastapi.testclient import TestClient
from scheme_tracker.utils.date_utils import add_months

TODAY = date(2024, 6, 15)

pytestmark = pytest.mark.integration


def _create(client: TestClient, start_months_ago: int = 0, **overrides) -> dict:
    body = {
        "customer_name": "Asha Verma",
        "start_date": add_months(TODAY, -start_months_ago).isoformat(),
        "monthly_amount_cents": 100000,
    }
    body.update(overrides)
    response = client.post("/v1/schemes", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    _create(client)
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "scheme_created_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_create_and_get_scheme(client: TestClient):
    """Test POST /v1/schemes then GET /v1/schemes/{id}"""
    created = _create(client, start_months_ago=4, customer_group_name="Office")

    assert created["status"] == "Overdue"
    assert len(created["payments"]) == 12
    assert created["payments"][0]["id"] == f"{created['id']}-month-1"
    assert created["total_remaining_cents"] == 1200000

    response = client.get(f"/v1/schemes/{created['id']}")
    assert response.status_code == 200
    data = response.json()
    assert data["customer_group_name"] == "Office"
    assert [p["status"] for p in data["payments"][:4]] == ["Overdue", "Overdue", "Overdue", "Upcoming"]


def test_create_scheme_validation(client: TestClient):
    response = client.post(
        "/v1/schemes",
        json={"customer_name": "Asha", "start_date": TODAY.isoformat(), "monthly_amount_cents": 0},
    )
    assert response.status_code == 422


def test_get_missing_scheme(client: TestClient):
    response = client.get("/v1/schemes/does-not-exist")
    assert response.status_code == 404


def test_list_schemes_hides_archived(client: TestClient):
    kept = _create(client)
    archived = _create(client, customer_name="Ravi")
    client.post(f"/v1/schemes/{archived['id']}/close", json={})
    client.post(f"/v1/schemes/{archived['id']}/archive", json={})

    ids = [s["id"] for s in client.get("/v1/schemes").json()["schemes"]]
    assert ids == [kept["id"]]

    all_ids = [s["id"] for s in client.get("/v1/schemes", params={"include_archived": True}).json()["schemes"]]
    assert set(all_ids) == {kept["id"], archived["id"]}


def test_record_payments_in_order(client: TestClient):
    scheme = _create(client, start_months_ago=4)
    scheme_id = scheme["id"]

    response = client.post(f"/v1/schemes/{scheme_id}/payments/{scheme_id}-month-2", json={"modes": ["Cash"]})
    assert response.status_code == 409

    for month in (1, 2, 3):
        response = client.post(
            f"/v1/schemes/{scheme_id}/payments/{scheme_id}-month-{month}",
            json={"modes": ["Cash", "UPI"]},
        )
        assert response.status_code == 200, response.text

    data = response.json()
    assert data["status"] == "Active"
    assert data["payments_made_count"] == 3
    assert data["total_collected_cents"] == 300000
    assert set(data["payments"][0]["mode_of_payment"]) == {"Cash", "UPI"}
    assert data["payments"][0]["payment_date"] == TODAY.isoformat()


def test_record_payment_invalid_mode(client: TestClient):
    scheme = _create(client)
    response = client.post(
        f"/v1/schemes/{scheme['id']}/payments/{scheme['id']}-month-1",
        json={"modes": ["Cheque"]},
    )
    assert response.status_code == 422


def test_edit_and_reverse_payment(client: TestClient):
    scheme = _create(client, start_months_ago=2)
    payment_url = f"/v1/schemes/{scheme['id']}/payments/{scheme['id']}-month-1"

    client.post(payment_url, json={"amount_paid_cents": 50000, "payment_date": "2024-05-10"})
    edited = client.patch(payment_url, json={"amount_paid_cents": 100000}).json()
    assert edited["payments"][0]["status"] == "Paid"
    assert edited["payments"][0]["payment_date"] == "2024-05-10"

    reversed_scheme = client.delete(payment_url).json()
    assert reversed_scheme["payments"][0]["amount_paid_cents"] is None
    assert reversed_scheme["status"] == "Overdue"


def test_batch_record(client: TestClient):
    scheme = _create(client)

    response = client.post(f"/v1/schemes/{scheme['id']}/payments/batch", json={"months": 3, "modes": ["Transfer"]})

    assert response.status_code == 200
    data = response.json()
    assert data["success_count"] == 3
    assert data["total_recorded_cents"] == 300000
    assert data["details"][0]["month_numbers"] == [1, 2, 3]

    response = client.post(f"/v1/schemes/{scheme['id']}/payments/batch", json={"months": 0})
    assert response.status_code == 422


def test_delete_requires_closed_scheme(client: TestClient):
    scheme = _create(client, start_months_ago=3)

    response = client.delete(f"/v1/schemes/{scheme['id']}")
    assert response.status_code == 409
    assert response.json()["detail"]["status"] == "Overdue"

    closed = client.post(f"/v1/schemes/{scheme['id']}/close", json={}).json()
    assert closed["status"] == "Closed"
    assert closed["total_remaining_cents"] == 0

    response = client.delete(f"/v1/schemes/{scheme['id']}")
    assert response.status_code == 200
    assert response.json() == {"scheme_id": scheme["id"], "deleted": True}
    assert client.get(f"/v1/schemes/{scheme['id']}").status_code == 404


def test_close_reopen_archive_cycle(client: TestClient):
    scheme = _create(client, start_months_ago=1)
    scheme_id = scheme["id"]

    assert client.post(f"/v1/schemes/{scheme_id}/archive", json={}).status_code == 409

    client.post(f"/v1/schemes/{scheme_id}/close", json={"closure_date": TODAY.isoformat()})
    reopened = client.post(f"/v1/schemes/{scheme_id}/reopen").json()
    assert reopened["status"] == "Active"
    assert reopened["total_collected_cents"] == 0

    client.post(f"/v1/schemes/{scheme_id}/close", json={})
    archived = client.post(f"/v1/schemes/{scheme_id}/archive", json={}).json()
    assert archived["status"] == "Archived"
    unarchived = client.post(f"/v1/schemes/{scheme_id}/unarchive").json()
    assert unarchived["status"] == "Closed"


def test_auto_archive(client: TestClient):
    scheme = _create(client, start_months_ago=6)
    client.post(f"/v1/schemes/{scheme['id']}/close", json={"closure_date": add_months(TODAY, -3).isoformat()})

    response = client.post("/v1/maintenance/auto-archive", json={"grace_period_days": 60})

    assert response.json() == {"archived_count": 1}
    assert client.get(f"/v1/schemes/{scheme['id']}").json()["status"] == "Archived"


def test_groups(client: TestClient):
    asha = _create(client, start_months_ago=2, customer_group_name="Office")
    _create(client, customer_name="Ravi", customer_group_name="Office")
    _create(client, customer_name="Meera", customer_group_name="Gym")

    assert client.get("/v1/groups").json() == {"groups": ["Gym", "Office"]}

    summary = {g["group_name"]: g for g in client.get("/v1/groups/summary").json()["groups"]}
    assert summary["Office"]["scheme_count"] == 2
    assert summary["Office"]["customer_names"] == ["Asha Verma", "Ravi"]

    response = client.post("/v1/groups/Office/payments", json={"modes": ["Cash"]})
    assert response.status_code == 200
    data = response.json()
    assert data["success_count"] == 2
    assert data["total_recorded_cents"] == 200000

    assert client.get(f"/v1/schemes/{asha['id']}").json()["payments"][0]["status"] == "Paid"


def test_due_payments(client: TestClient):
    overdue = _create(client, start_months_ago=2)
    _create(client, customer_name="Ravi")

    payments = client.get("/v1/payments/due").json()["payments"]

    assert [p["customer_name"] for p in payments] == ["Asha Verma", "Ravi"]
    assert payments[0]["payment_id"] == f"{overdue['id']}-month-1"
    assert payments[0]["status"] == "Overdue"


def test_archive_payment(client: TestClient):
    scheme = _create(client)
    url = f"/v1/schemes/{scheme['id']}/payments/{scheme['id']}-month-12"

    archived = client.post(f"{url}/archive", json={}).json()
    assert archived["payments"][11]["is_archived"] is True
    assert archived["total_remaining_cents"] == 1100000

    restored = client.post(f"{url}/unarchive").json()
    assert restored["total_remaining_cents"] == 1200000
