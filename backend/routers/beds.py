from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from database import get_session
from models import Bed, Gender, Room, Staff, StaffRole, Ward
from services.bed_registry import BedRegistry
from services.integrity import occupancy_violations
from services.staff import get_current_staff, require_roles

router = APIRouter(prefix="/beds", tags=["beds"])

requires_manager = require_roles(StaffRole.MANAGER)


def bed_response(bed: Bed, session: Session) -> dict:
    data = bed.model_dump()
    room = session.get(Room, bed.room_id)
    ward = session.get(Ward, room.ward_id) if room else None
    data["room_number"] = room.room_number if room else None
    data["ward_name"] = ward.name if ward else None
    return data


@router.get("")
def list_beds(
    ward: str = Query("", max_length=64),
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    registry = BedRegistry(session)
    beds = registry.find_by_ward(ward.strip()) if ward.strip() else registry.find_all()
    return [bed_response(bed, session) for bed in beds]


@router.get("/available")
def list_available_beds(
    ward: str = Query("", max_length=64),
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    registry = BedRegistry(session)
    if ward.strip():
        beds = registry.find_available_by_ward(ward.strip())
    else:
        beds = registry.find_available()
    return [bed_response(bed, session) for bed in beds]


@router.get("/available/gender/{gender}")
def list_available_beds_for_gender(
    gender: Gender,
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    beds = BedRegistry(session).find_available_for_gender(gender)
    return [bed_response(bed, session) for bed in beds]


@router.get("/available/isolation")
def list_available_isolation_beds(
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    return [bed_response(bed, session) for bed in BedRegistry(session).find_available_isolation()]


@router.get("/census")
def bed_census(
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    return BedRegistry(session).occupancy_summary()


@router.get("/integrity")
def bed_integrity(
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(requires_manager),
):
    violations = occupancy_violations(session)
    return {"ok": not violations, "violations": violations}


@router.get("/room/{room_id}")
def list_room_beds(
    room_id: int,
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    return [bed_response(bed, session) for bed in BedRegistry(session).find_by_room(room_id)]


@router.get("/{bed_id}")
def get_bed(
    bed_id: int,
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    return bed_response(BedRegistry(session).find_by_id(bed_id), session)
