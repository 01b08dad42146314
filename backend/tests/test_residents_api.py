from sqlmodel import Session, select

from conftest import TEST_ENGINE
from models import Bed, BedTransfer, Resident


def _admit(client, headers, **overrides):
    payload = {"first_name": "Asha", "last_name": "Rao", "gender": "Female"}
    payload.update(overrides)
    return client.post("/residents", json=payload, headers=headers)


def test_admit_without_bed(client, nurse_headers):
    response = _admit(client, nurse_headers)

    assert response.status_code == 201
    data = response.json()
    assert data["current_bed"] is None
    assert data["admission_transfer"] is None
    assert data["is_discharged"] is False


def test_admit_into_named_bed_records_admission(client, nurse_headers, staff_ids, layout):
    response = _admit(client, nurse_headers, bed_id=layout["b1"])

    assert response.status_code == 201
    data = response.json()
    assert data["current_bed_id"] == layout["b1"]
    assert data["current_bed"]["ward_name"] == "Ward 1"
    assert data["current_bed"]["room_number"] == "101"
    admission = data["admission_transfer"]
    assert admission["from_bed_id"] is None
    assert admission["is_admission"] is True
    assert admission["reason"] == "admission"
    assert admission["staff_id"] == staff_ids["nurse"]
    assert admission["staff_name"] == "Nurse"


def test_auto_assign_picks_first_suitable_bed(client, manager_headers, layout):
    response = _admit(client, manager_headers, gender="Male", requires_isolation=True, auto_assign=True)

    assert response.status_code == 201
    assert response.json()["current_bed_id"] == layout["b3"]


def test_admit_rejects_bed_id_with_auto_assign(client, nurse_headers, layout):
    response = _admit(client, nurse_headers, bed_id=layout["b1"], auto_assign=True)
    assert response.status_code == 422


def test_failed_admission_does_not_leave_a_resident_behind(client, nurse_headers, layout):
    response = _admit(client, nurse_headers, bed_id=layout["b2"])

    assert response.status_code == 422
    body = response.json()
    assert body["code"] == "BED_UNSUITABLE"
    assert body["error"] == "PRECONDITION_FAILED"
    with Session(TEST_ENGINE) as check:
        assert check.exec(select(Resident)).all() == []
        assert check.get(Bed, layout["b2"]).is_occupied is False


def test_admit_into_missing_bed_is_404(client, nurse_headers, layout):
    response = _admit(client, nurse_headers, bed_id=999)
    assert response.status_code == 404
    assert response.json()["context"] == {"bed_id": 999}


def test_transfer_flow_and_history(client, nurse_headers, layout):
    resident_id = _admit(client, nurse_headers, bed_id=layout["b1"]).json()["id"]

    moved = client.post(
        f"/residents/{resident_id}/transfer",
        json={"bed_id": layout["b3"]},
        headers=nurse_headers,
    )
    assert moved.status_code == 200
    assert moved.json()["from_bed_id"] == layout["b1"]
    assert moved.json()["to_bed_id"] == layout["b3"]
    assert moved.json()["reason"] == "routine transfer"

    again = client.post(
        f"/residents/{resident_id}/transfer",
        json={"bed_id": layout["b3"], "reason": "same bed"},
        headers=nurse_headers,
    )
    assert again.status_code == 422
    assert again.json()["code"] == "NO_OP_TRANSFER"

    history = client.get(f"/residents/{resident_id}/transfers", headers=nurse_headers)
    assert history.status_code == 200
    assert [row["to_bed_id"] for row in history.json()] == [layout["b3"], layout["b1"]]

    resident = client.get(f"/residents/{resident_id}", headers=nurse_headers).json()
    assert resident["current_bed"]["id"] == layout["b3"]


def test_transfer_into_occupied_bed_is_rejected(client, nurse_headers, layout):
    first = _admit(client, nurse_headers, bed_id=layout["b1"]).json()["id"]
    second = _admit(client, nurse_headers, first_name="Kavya", bed_id=layout["b3"]).json()["id"]

    response = client.post(
        f"/residents/{second}/transfer",
        json={"bed_id": layout["b1"]},
        headers=nurse_headers,
    )

    assert response.status_code == 422
    assert response.json()["code"] == "BED_OCCUPIED"
    assert response.json()["context"]["occupied_by"] == first
    with Session(TEST_ENGINE) as check:
        assert len(check.exec(select(BedTransfer)).all()) == 2


def test_transfer_of_unknown_resident_is_404(client, nurse_headers, layout):
    response = client.post("/residents/999/transfer", json={"bed_id": layout["b1"]}, headers=nurse_headers)
    assert response.status_code == 404
    assert response.json()["code"] == "RESIDENT_NOT_FOUND"


def test_validate_transfer_endpoint(client, nurse_headers, layout):
    resident_id = _admit(client, nurse_headers).json()["id"]

    ok = client.post(
        f"/residents/{resident_id}/transfer/validate",
        json={"bed_id": layout["b4"]},
        headers=nurse_headers,
    )
    bad = client.post(
        f"/residents/{resident_id}/transfer/validate",
        json={"bed_id": layout["b2"]},
        headers=nurse_headers,
    )

    assert ok.json() == {"valid": True, "errors": [], "codes": []}
    assert bad.status_code == 200
    assert bad.json()["valid"] is False
    assert bad.json()["codes"] == ["BED_UNSUITABLE"]


def test_suitable_beds_listing(client, nurse_headers, layout):
    resident_id = _admit(client, nurse_headers).json()["id"]

    response = client.get(f"/residents/{resident_id}/suitable-beds", headers=nurse_headers)

    assert response.status_code == 200
    assert [bed["id"] for bed in response.json()] == [layout["b1"], layout["b3"], layout["b4"]]


def test_discharge_frees_bed_and_blocks_further_moves(client, nurse_headers, doctor_headers, layout):
    resident_id = _admit(client, nurse_headers, bed_id=layout["b1"]).json()["id"]

    blocked = client.post(f"/residents/{resident_id}/discharge", json={}, headers=nurse_headers)
    assert blocked.status_code == 403

    response = client.post(
        f"/residents/{resident_id}/discharge",
        json={"discharge_date": "2026-03-20"},
        headers=doctor_headers,
    )
    assert response.status_code == 200
    assert response.json()["discharge_date"] == "2026-03-20"
    assert response.json()["current_bed"] is None

    available = client.get("/beds/available", headers=nurse_headers).json()
    assert layout["b1"] in [bed["id"] for bed in available]

    retry = client.post(
        f"/residents/{resident_id}/transfer",
        json={"bed_id": layout["b3"]},
        headers=nurse_headers,
    )
    assert retry.status_code == 422
    assert retry.json()["code"] == "RESIDENT_DISCHARGED"


def test_list_residents_hides_discharged_by_default(client, nurse_headers, doctor_headers):
    kept = _admit(client, nurse_headers, first_name="Vivek").json()["id"]
    gone = _admit(client, nurse_headers, first_name="Kavya").json()["id"]
    client.post(f"/residents/{gone}/discharge", json={}, headers=doctor_headers)

    active = client.get("/residents", headers=nurse_headers).json()
    everyone = client.get("/residents?include_discharged=true", headers=nurse_headers).json()
    searched = client.get("/residents?search=Viv", headers=nurse_headers).json()

    assert [r["id"] for r in active["residents"]] == [kept]
    assert everyone["total"] == 2
    assert [r["id"] for r in searched["residents"]] == [kept]


def test_placement_requires_staff_identity_and_role(client, doctor_headers, layout):
    assert _admit(client, {}).status_code == 401
    assert _admit(client, {"X-Staff-Id": "9999"}).status_code == 401
    assert _admit(client, doctor_headers).status_code == 403


def test_staff_transfer_feed_and_stats(client, nurse_headers, manager_headers, staff_ids, layout):
    for first_name, bed in (("Asha", "b1"), ("Kavya", "b3"), ("Meera", "b4")):
        _admit(client, nurse_headers, first_name=first_name, bed_id=layout[bed])

    feed = client.get(f"/transfers/staff/{staff_ids['nurse']}?limit=2", headers=nurse_headers)
    assert feed.status_code == 200
    assert feed.json()["staff"]["role"] == "nurse"
    assert len(feed.json()["transfers"]) == 2

    assert client.get("/transfers/staff/9999", headers=nurse_headers).status_code == 404
    assert client.get("/transfers/stats", headers=nurse_headers).status_code == 403

    stats = client.get("/transfers/stats", headers=manager_headers).json()
    assert stats["transfers_today"] == 3
    assert stats["admissions_today"] == 3
