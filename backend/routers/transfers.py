import os

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from database import get_session
from models import BedTransfer, Staff, StaffRole
from services.audit import TransferAuditLog
from services.staff import get_current_staff, require_roles, staff_payload

router = APIRouter(prefix="/transfers", tags=["transfers"])

RECENT_TRANSFERS_LIMIT = int(os.getenv("BEDWISE_RECENT_TRANSFERS_LIMIT", "20"))


def transfer_rows(transfers: list[BedTransfer], session: Session) -> list[dict]:
    staff_ids = sorted({t.staff_id for t in transfers})
    staff_map: dict[int, Staff] = {}
    if staff_ids:
        members = session.exec(select(Staff).where(Staff.id.in_(staff_ids))).all()  # type: ignore[union-attr]
        staff_map = {member.id: member for member in members if member.id is not None}

    rows = []
    for t in transfers:
        data = t.model_dump()
        data["is_admission"] = t.is_admission
        member = staff_map.get(t.staff_id)
        data["staff_name"] = member.name if member else None
        rows.append(data)
    return rows


@router.get("/stats")
def transfer_stats(
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(require_roles(StaffRole.MANAGER)),
):
    return TransferAuditLog(session).transfer_stats()


@router.get("/staff/{staff_id}")
def recent_transfers_by_staff(
    staff_id: int,
    limit: int = Query(default=RECENT_TRANSFERS_LIMIT, ge=1, le=200),
    session: Session = Depends(get_session),
    _current_staff: Staff = Depends(get_current_staff),
):
    member = session.get(Staff, staff_id)
    if not member:
        raise HTTPException(404, "Staff member not found")

    transfers = TransferAuditLog(session).recent_by_staff(staff_id, limit)
    return {
        "staff": staff_payload(member),
        "transfers": transfer_rows(transfers, session),
    }
