from __future__ import annotations

import os
import tempfile
from pathlib import Path

os.environ.setdefault("BEDWISE_DB_FILE", str(Path(tempfile.gettempdir()) / "bedwise-test.db"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel, Session, create_engine  # noqa: E402

from database import get_session  # noqa: E402
from main import app  # noqa: E402
from models import Bed, Gender, GenderRestriction, Resident, Room, RoomType, Staff, StaffRole, Ward  # noqa: E402

TEST_ENGINE = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def _override_get_session():
    with Session(TEST_ENGINE) as session:
        yield session


@pytest.fixture(autouse=True)
def reset_db():
    SQLModel.metadata.drop_all(TEST_ENGINE)
    SQLModel.metadata.create_all(TEST_ENGINE)


@pytest.fixture
def session():
    with Session(TEST_ENGINE) as db_session:
        yield db_session


@pytest.fixture
def client():
    app.dependency_overrides[get_session] = _override_get_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def staff_ids():
    members = {
        "manager": Staff(name="Manager", role=StaffRole.MANAGER),
        "doctor": Staff(name="Doctor", role=StaffRole.DOCTOR),
        "nurse": Staff(name="Nurse", role=StaffRole.NURSE),
    }
    with Session(TEST_ENGINE) as db_session:
        for member in members.values():
            db_session.add(member)
        db_session.commit()
        return {key: member.id for key, member in members.items()}


def _headers(staff_id: int) -> dict[str, str]:
    return {"X-Staff-Id": str(staff_id)}


@pytest.fixture
def manager_headers(staff_ids):
    return _headers(staff_ids["manager"])


@pytest.fixture
def doctor_headers(staff_ids):
    return _headers(staff_ids["doctor"])


@pytest.fixture
def nurse_headers(staff_ids):
    return _headers(staff_ids["nurse"])


def add_bed(
    db_session: Session,
    room_id: int,
    bed_number: str,
    gender_restriction: GenderRestriction = GenderRestriction.NONE,
    isolation_capable: bool = False,
) -> int:
    bed = Bed(
        room_id=room_id,
        bed_number=bed_number,
        gender_restriction=gender_restriction,
        isolation_capable=isolation_capable,
    )
    db_session.add(bed)
    db_session.commit()
    return bed.id


def add_resident(
    db_session: Session,
    first_name: str = "Resident",
    gender: Gender = Gender.FEMALE,
    requires_isolation: bool = False,
) -> int:
    resident = Resident(
        first_name=first_name,
        last_name="Test",
        gender=gender,
        requires_isolation=requires_isolation,
    )
    db_session.add(resident)
    db_session.commit()
    return resident.id


@pytest.fixture
def layout():
    """Two wards; beds listed here in registry order.

    b1  Ward 1 / 101 / A  unrestricted
    b2  Ward 1 / 101 / B  male only
    b3  Ward 1 / 102 / A  unrestricted, isolation-capable
    b4  Ward 2 / 201 / A  female only
    """
    with Session(TEST_ENGINE) as db_session:
        ward_1 = Ward(name="Ward 1")
        ward_2 = Ward(name="Ward 2")
        db_session.add(ward_1)
        db_session.add(ward_2)
        db_session.commit()

        room_101 = Room(ward_id=ward_1.id, room_number="101", max_capacity=2)
        room_102 = Room(ward_id=ward_1.id, room_number="102", room_type=RoomType.ISOLATION)
        room_201 = Room(ward_id=ward_2.id, room_number="201")
        for room in (room_101, room_102, room_201):
            db_session.add(room)
        db_session.commit()

        ids = {
            "ward_1": ward_1.id,
            "ward_2": ward_2.id,
            "room_101": room_101.id,
            "room_102": room_102.id,
            "room_201": room_201.id,
        }
        # Inserted out of order so listings prove they sort.
        ids["b4"] = add_bed(db_session, room_201.id, "A", GenderRestriction.FEMALE)
        ids["b3"] = add_bed(db_session, room_102.id, "A", isolation_capable=True)
        ids["b2"] = add_bed(db_session, room_101.id, "B", GenderRestriction.MALE)
        ids["b1"] = add_bed(db_session, room_101.id, "A")
        return ids
