from __future__ import annotations

import logging
from typing import Callable

from fastapi import Depends, Header, HTTPException, status
from sqlmodel import Session

from database import get_session
from models import Staff, StaffRole

logger = logging.getLogger("bedwise.staff")


def get_current_staff(
    x_staff_id: int | None = Header(default=None),
    session: Session = Depends(get_session),
) -> Staff:
    if x_staff_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-Staff-Id header")
    staff = session.get(Staff, x_staff_id)
    if not staff or not staff.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Staff member inactive or missing")
    return staff


def require_roles(*roles: StaffRole | str) -> Callable:
    allowed = {role.value if isinstance(role, StaffRole) else str(role) for role in roles}

    def _dependency(current_staff: Staff = Depends(get_current_staff)) -> Staff:
        if current_staff.role.value not in allowed:
            logger.warning(
                "Staff #%s with role '%s' blocked. Allowed roles: %s",
                current_staff.id,
                current_staff.role.value,
                ", ".join(sorted(allowed)),
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role '{current_staff.role.value}' is not allowed",
            )
        return current_staff

    return _dependency


def staff_payload(staff: Staff) -> dict:
    return {
        "id": staff.id,
        "name": staff.name,
        "role": staff.role.value,
    }
