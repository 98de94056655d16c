"""
Tests for blood inventory routes
"""
from datetime import datetime, timedelta

from bloodbank.database import BloodInventory, InventoryStatus


def _unit_payload(**overrides):
    payload = {
        "blood_type": "A+",
        "quantity": 450,
        "expiry_date": (datetime.utcnow() + timedelta(days=35)).isoformat(),
        "batch_number": "B-100",
    }
    payload.update(overrides)
    return payload


class TestInventoryAccess:
    """Role predicates on inventory routes"""

    def test_list_requires_authentication(self, client):
        response = client.get("/inventory")

        assert response.status_code == 401

    def test_any_authenticated_role_can_read(self, client, auth_headers_donor, make_unit):
        make_unit()

        response = client.get("/inventory", headers=auth_headers_donor)

        assert response.status_code == 200
        assert len(response.json()) == 1

    def test_donor_cannot_add(self, client, auth_headers_donor):
        response = client.post("/inventory/add", json=_unit_payload(), headers=auth_headers_donor)

        assert response.status_code == 403

    def test_anonymous_cannot_add(self, client):
        response = client.post("/inventory/add", json=_unit_payload())

        assert response.status_code == 401

    def test_technician_can_add(self, client, auth_headers_technician):
        response = client.post("/inventory/add", json=_unit_payload(), headers=auth_headers_technician)

        assert response.status_code == 200
        data = response.json()
        assert data["blood_type"] == "A_POSITIVE"
        assert data["status"] == "AVAILABLE"
        assert data["unit_of_measure"] == "ml"

    def test_doctor_cannot_add(self, client, auth_headers_doctor):
        response = client.post("/inventory/add", json=_unit_payload(), headers=auth_headers_doctor)

        assert response.status_code == 403

    def test_technician_cannot_remove(self, client, auth_headers_technician, make_unit):
        unit = make_unit()

        response = client.post(f"/inventory/{unit.id}/remove?quantity=1", headers=auth_headers_technician)

        assert response.status_code == 403


class TestInventoryMutations:
    """Create, update and remove through the API"""

    def test_add_duplicate_batch(self, client, auth_headers_nurse):
        client.post("/inventory/add", json=_unit_payload(), headers=auth_headers_nurse)

        response = client.post("/inventory/add", json=_unit_payload(), headers=auth_headers_nurse)

        assert response.status_code == 409

    def test_add_negative_quantity(self, client, auth_headers_nurse):
        response = client.post("/inventory/add", json=_unit_payload(quantity=-1), headers=auth_headers_nurse)

        assert response.status_code == 422

    def test_add_unknown_blood_type(self, client, auth_headers_nurse):
        response = client.post("/inventory/add", json=_unit_payload(blood_type="C+"), headers=auth_headers_nurse)

        assert response.status_code == 422

    def test_update_unit(self, client, auth_headers_admin, make_unit):
        unit = make_unit()

        response = client.put(
            f"/inventory/{unit.id}",
            json={
                "blood_type": "B-",
                "quantity": 100,
                "unit_of_measure": "ml",
                "expiry_date": (datetime.utcnow() + timedelta(days=1)).isoformat(),
                "status": "RESERVED",
            },
            headers=auth_headers_admin
        )

        assert response.status_code == 200
        data = response.json()
        assert data["blood_type"] == "B_NEGATIVE"
        assert data["quantity"] == 100
        assert data["status"] == "RESERVED"

    def test_update_without_status_is_rejected(self, client, db_session, auth_headers_admin, make_unit):
        unit = make_unit(quantity=0, status=InventoryStatus.DISCARDED)

        response = client.put(
            f"/inventory/{unit.id}",
            json={
                "blood_type": "A+",
                "quantity": 100,
                "unit_of_measure": "ml",
                "expiry_date": (datetime.utcnow() + timedelta(days=10)).isoformat(),
            },
            headers=auth_headers_admin
        )

        assert response.status_code == 422
        db_session.expire_all()
        stored = db_session.query(BloodInventory).filter(BloodInventory.id == unit.id).first()
        assert stored.status == InventoryStatus.DISCARDED
        assert stored.quantity == 0

    def test_update_without_unit_of_measure_is_rejected(self, client, auth_headers_admin, make_unit):
        unit = make_unit()

        response = client.put(
            f"/inventory/{unit.id}",
            json={
                "blood_type": "A+",
                "quantity": 100,
                "expiry_date": (datetime.utcnow() + timedelta(days=10)).isoformat(),
                "status": "AVAILABLE",
            },
            headers=auth_headers_admin
        )

        assert response.status_code == 422

    def test_update_unknown_unit(self, client, auth_headers_admin):
        response = client.put(
            "/inventory/999",
            json={
                "blood_type": "B-",
                "quantity": 100,
                "unit_of_measure": "ml",
                "expiry_date": (datetime.utcnow() + timedelta(days=1)).isoformat(),
                "status": "AVAILABLE",
            },
            headers=auth_headers_admin
        )

        assert response.status_code == 404

    def test_doctor_removes_quantity(self, client, db_session, auth_headers_doctor, make_unit):
        unit = make_unit(quantity=450)

        response = client.post(f"/inventory/{unit.id}/remove?quantity=450", headers=auth_headers_doctor)

        assert response.status_code == 204
        db_session.expire_all()
        stored = db_session.query(BloodInventory).filter(BloodInventory.id == unit.id).first()
        assert stored.quantity == 0
        assert stored.status == InventoryStatus.DISCARDED

    def test_remove_too_much(self, client, auth_headers_doctor, make_unit):
        unit = make_unit(quantity=100)

        response = client.post(f"/inventory/{unit.id}/remove?quantity=101", headers=auth_headers_doctor)

        assert response.status_code == 409
        assert response.json()["detail"] == "Insufficient blood quantity"
        assert client.get(f"/inventory/{unit.id}", headers=auth_headers_doctor).json()["quantity"] == 100

    def test_remove_zero(self, client, auth_headers_doctor, make_unit):
        unit = make_unit(quantity=100)

        response = client.post(f"/inventory/{unit.id}/remove?quantity=0", headers=auth_headers_doctor)

        assert response.status_code == 400

    def test_remove_unknown_unit(self, client, auth_headers_doctor):
        response = client.post("/inventory/999/remove?quantity=1", headers=auth_headers_doctor)

        assert response.status_code == 404


class TestInventoryQueries:
    """Read endpoints"""

    def test_get_unknown_unit(self, client, auth_headers_nurse):
        response = client.get("/inventory/999", headers=auth_headers_nurse)

        assert response.status_code == 404

    def test_available_by_display_blood_type(self, client, auth_headers_nurse, make_unit):
        unit = make_unit()
        make_unit(expires_in=timedelta(days=-1))

        response = client.get("/inventory/available/A+", headers=auth_headers_nurse)

        assert response.status_code == 200
        assert [u["id"] for u in response.json()] == [unit.id]

    def test_unknown_blood_type_in_path(self, client, auth_headers_nurse):
        response = client.get("/inventory/type/Z_POSITIVE", headers=auth_headers_nurse)

        assert response.status_code == 400

    def test_total_available(self, client, auth_headers_nurse, make_unit):
        make_unit(quantity=450)
        make_unit(quantity=50)
        make_unit(quantity=300, status=InventoryStatus.RESERVED)

        response = client.get("/inventory/total/A_POSITIVE", headers=auth_headers_nurse)

        assert response.status_code == 200
        assert response.json() == {"blood_type": "A_POSITIVE", "total_quantity": 500}

    def test_expired_requires_expiry_manager(self, client, auth_headers_nurse, auth_headers_technician, make_unit):
        unit = make_unit(expires_in=timedelta(days=-1))

        assert client.get("/inventory/expired", headers=auth_headers_nurse).status_code == 403

        response = client.get("/inventory/expired", headers=auth_headers_technician)
        assert response.status_code == 200
        assert [u["id"] for u in response.json()] == [unit.id]


class TestSweepRoute:
    """On-demand expiry sweep"""

    def test_sweep(self, client, auth_headers_technician, make_unit):
        stale = make_unit(expires_in=timedelta(days=-1))
        make_unit(expires_in=timedelta(days=10))

        response = client.post("/inventory/sweep-expired", headers=auth_headers_technician)

        assert response.status_code == 200
        data = response.json()
        assert data["affected"] == 1
        assert data["units"][0]["id"] == stale.id
        assert data["units"][0]["status"] == "EXPIRED"

    def test_sweep_ignores_client_supplied_time(self, client, db_session, auth_headers_technician, make_unit):
        fresh = make_unit(expires_in=timedelta(days=30))
        future = (datetime.utcnow() + timedelta(days=365)).isoformat()

        response = client.post(
            "/inventory/sweep-expired",
            params={"now": future},
            headers=auth_headers_technician
        )

        assert response.status_code == 200
        assert response.json()["affected"] == 0
        db_session.expire_all()
        stored = db_session.query(BloodInventory).filter(BloodInventory.id == fresh.id).first()
        assert stored.status == InventoryStatus.AVAILABLE

    def test_doctor_cannot_sweep(self, client, auth_headers_doctor):
        response = client.post("/inventory/sweep-expired", headers=auth_headers_doctor)

        assert response.status_code == 403
