import os
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlmodel import Session

from database import get_session
from models import Gender, Resident, Staff, StaffRole
from routers.beds import bed_response
from routers.transfers import transfer_rows
from services.audit import TransferAuditLog
from services.bed_registry import BedRegistry
from services.eligibility import find_suitable
from services.errors import BedAllocationError
from services.residents import ResidentDirectory
from services.staff import get_current_staff, require_roles
from services.transfers import TransferOrchestrator

router = APIRouter(prefix="/residents", tags=["residents"])

requires_placement_staff = require_roles(StaffRole.MANAGER, StaffRole.NURSE)
requires_discharge_staff = require_roles(StaffRole.MANAGER, StaffRole.DOCTOR)

DEFAULT_TRANSFER_REASON = os.getenv("BEDWISE_DEFAULT_TRANSFER_REASON", "routine transfer")
DEFAULT_ADMISSION_REASON = "admission"


class ResidentAdmit(BaseModel):
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(min_length=1, max_length=80)
    gender: Gender
    birth_date: Optional[date] = None
    requires_isolation: bool = False
    admission_date: Optional[date] = None
    bed_id: Optional[int] = None
    auto_assign: bool = False
    reason: str = Field(default="", max_length=500)


class TransferRequest(BaseModel):
    bed_id: int
    reason: str = Field(default="", max_length=500)


class DischargeRequest(BaseModel):
    discharge_date: Optional[date] = None


def _reason(raw: str, default: str) -> str:
    return raw.strip() or default


def resident_response(resident: Resident, session: Session) -> dict:
    data = resident.model_dump()
    data["is_discharged"] = resident.is_discharged
    data["current_bed"] = None
    if resident.current_bed_id is not None:
        data["current_bed"] = bed_response(BedRegistry(session).find_by_id(resident.current_bed_id), session)
    return data


@router.post("", status_code=201)
def admit_resident(
    body: ResidentAdmit,
    session: Session = Depends(get_session),
    current_staff: Staff = Depends(requires_placement_staff),
):
    first_name = body.first_name.strip()
    last_name = body.last_name.strip()
    if not first_name or not last_name:
        raise HTTPException(422, "Resident name cannot be empty")
    if body.bed_id is not None and body.auto_assign:
        raise HTTPException(422, "Set bed_id OR auto_assign, not both")

    resident = ResidentDirectory(session).register(
        first_name=first_name,
        last_name=last_name,
        gender=body.gender,
        birth_date=body.birth_date,
        requires_isolation=body.requires_isolation,
        admission_date=body.admission_date,
    )
    resident_id = resident.id
    orchestrator = TransferOrchestrator(session)
    reason = _reason(body.reason, DEFAULT_ADMISSION_REASON)

    transfer = None
    try:
        if body.bed_id is not None:
            transfer = orchestrator.admit_or_transfer(resident_id, body.bed_id, current_staff.id, reason)
        elif body.auto_assign:
            transfer = orchestrator.admit_to_first_suitable(resident_id, current_staff.id, reason)
        else:
            session.commit()
    except BedAllocationError:
        # The resident row is part of the same unit of work as the bed claim.
        session.rollback()
        raise
    except Exception:
        session.rollback()
        raise HTTPException(500, "Failed to admit resident")

    resident = ResidentDirectory(session).get(resident_id)
    result = resident_response(resident, session)
    result["admission_transfer"] = transfer_rows([transfer], session)[0] if transfer else None
    return result


@router.get("")
def list_residents(
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
    include_discharged: bool = Query(False),
    search: str = Query("", max_length=120),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=100),
):
    residents = ResidentDirectory(session).list_residents(
        include_discharged=include_discharged,
        search=search,
    )
    start = (page - 1) * page_size
    return {
        "residents": [resident_response(r, session) for r in residents[start:start + page_size]],
        "total": len(residents),
        "page": page,
        "page_size": page_size,
    }


@router.get("/{resident_id}")
def get_resident(
    resident_id: int,
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    return resident_response(ResidentDirectory(session).get(resident_id), session)


@router.get("/{resident_id}/suitable-beds")
def suitable_beds(
    resident_id: int,
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    resident = ResidentDirectory(session).get(resident_id)
    beds = find_suitable(BedRegistry(session), resident)
    return [bed_response(bed, session) for bed in beds]


@router.post("/{resident_id}/transfer/validate")
def validate_transfer(
    resident_id: int,
    body: TransferRequest,
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(requires_placement_staff),
):
    validation = TransferOrchestrator(session).validate_transfer(resident_id, body.bed_id)
    return {
        "valid": validation.valid,
        "errors": validation.errors,
        "codes": validation.codes,
    }


@router.post("/{resident_id}/transfer")
def transfer_resident(
    resident_id: int,
    body: TransferRequest,
    session: Session = Depends(get_session),
    current_staff: Staff = Depends(requires_placement_staff),
):
    transfer = TransferOrchestrator(session).admit_or_transfer(
        resident_id,
        body.bed_id,
        current_staff.id,
        _reason(body.reason, DEFAULT_TRANSFER_REASON),
    )
    return transfer_rows([transfer], session)[0]


@router.post("/{resident_id}/discharge")
def discharge_resident(
    resident_id: int,
    body: DischargeRequest,
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(requires_discharge_staff),
):
    resident = TransferOrchestrator(session).discharge(resident_id, on=body.discharge_date)
    return resident_response(resident, session)


@router.get("/{resident_id}/transfers")
def list_transfers(
    resident_id: int,
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    ResidentDirectory(session).get(resident_id)
    transfers = TransferAuditLog(session).history_for_resident(resident_id)
    return transfer_rows(transfers, session)
