from __future__ import annotations

from datetime import date
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm.util import identity_key
from sqlmodel import Session, select

from models import Gender, Resident
from services.errors import ResidentNotFound


class ResidentDirectory:
    """Resident placement attributes and current-bed references.

    Mutations are flushed, never committed: the caller owns the unit of work.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, resident_id: int) -> Resident:
        resident = self.session.get(Resident, resident_id)
        if resident is None:
            raise ResidentNotFound(resident_id)
        return resident

    def is_discharged(self, resident_id: int) -> bool:
        return self.get(resident_id).is_discharged

    def set_current_bed(self, resident_id: int, bed_id: Optional[int]) -> Resident:
        resident = self.get(resident_id)
        resident.current_bed_id = bed_id
        self.session.add(resident)
        self.session.flush()
        return resident

    def swap_current_bed(
        self,
        resident_id: int,
        expected_bed_id: Optional[int],
        bed_id: Optional[int],
    ) -> bool:
        """Point the resident at ``bed_id`` only while they still reference ``expected_bed_id``.

        Conditional UPDATE judged by rowcount, so a move committed by another
        session since the resident was read makes this return ``False``.
        """
        current = Resident.current_bed_id
        if expected_bed_id is None:
            guard = current.is_(None)  # type: ignore[union-attr]
        else:
            guard = current == expected_bed_id
        result = self.session.exec(
            update(Resident)
            .where(Resident.id == resident_id, guard)
            .values(current_bed_id=bed_id)
            .execution_options(synchronize_session=False)
        )
        cached = self.session.identity_map.get(identity_key(Resident, resident_id))
        if cached is not None:
            self.session.expire(cached)
        return result.rowcount == 1

    def mark_discharged(self, resident_id: int, on: date) -> Resident:
        resident = self.get(resident_id)
        resident.discharge_date = on
        resident.current_bed_id = None
        self.session.add(resident)
        self.session.flush()
        return resident

    def register(
        self,
        *,
        first_name: str,
        last_name: str,
        gender: Gender,
        birth_date: Optional[date] = None,
        requires_isolation: bool = False,
        admission_date: Optional[date] = None,
    ) -> Resident:
        resident = Resident(
            first_name=first_name,
            last_name=last_name,
            gender=gender,
            birth_date=birth_date,
            requires_isolation=requires_isolation,
            admission_date=admission_date or date.today(),
        )
        self.session.add(resident)
        self.session.flush()
        return resident

    def list_residents(
        self,
        *,
        include_discharged: bool = False,
        search: str = "",
    ) -> list[Resident]:
        query = select(Resident)
        if not include_discharged:
            query = query.where(Resident.discharge_date == None)  # noqa: E711
        if search.strip():
            term = search.strip()
            query = query.where(
                Resident.first_name.contains(term) | Resident.last_name.contains(term)  # type: ignore[union-attr]
            )
        return list(
            self.session.exec(
                query.order_by(Resident.admission_date.desc(), Resident.id.desc())  # type: ignore[union-attr]
            ).all()
        )
