from __future__ import annotations

import logging

from sqlalchemy import or_, update
from sqlalchemy.orm.util import identity_key
from sqlmodel import Session, select

from models import Bed, Gender, GenderRestriction, Room, Ward
from services.errors import BedNotFound

logger = logging.getLogger("bedwise.registry")


class BedRegistry:
    """Canonical bed state for one session.

    Every listing is ordered by ward, room number, then bed label so that two
    calls without an intervening mutation return the same sequence. The
    matcher's "first eligible bed" relies on that.
    """

    def __init__(self, session: Session):
        self.session = session

    def _beds(self, *criteria) -> list[Bed]:
        query = (
            select(Bed)
            .join(Room, Room.id == Bed.room_id)
            .join(Ward, Ward.id == Room.ward_id)
        )
        for criterion in criteria:
            query = query.where(criterion)
        query = query.order_by(
            Room.ward_id.asc(),  # type: ignore[union-attr]
            Room.room_number.asc(),  # type: ignore[union-attr]
            Bed.bed_number.asc(),  # type: ignore[union-attr]
            Bed.id.asc(),  # type: ignore[union-attr]
        )
        return list(self.session.exec(query).all())

    def find_all(self) -> list[Bed]:
        return self._beds()

    def find_available(self) -> list[Bed]:
        return self._beds(Bed.is_occupied == False)  # noqa: E712

    def find_by_ward(self, ward_name: str) -> list[Bed]:
        return self._beds(Ward.name == ward_name)

    def find_available_by_ward(self, ward_name: str) -> list[Bed]:
        return self._beds(Ward.name == ward_name, Bed.is_occupied == False)  # noqa: E712

    def find_by_room(self, room_id: int) -> list[Bed]:
        return self._beds(Bed.room_id == room_id)

    def find_available_for_gender(self, gender: Gender | str) -> list[Bed]:
        """Vacant beds that are unrestricted or restricted to ``gender``."""
        restriction = GenderRestriction(getattr(gender, "value", gender))
        return self._beds(
            Bed.is_occupied == False,  # noqa: E712
            or_(Bed.gender_restriction == GenderRestriction.NONE, Bed.gender_restriction == restriction),
        )

    def find_available_isolation(self) -> list[Bed]:
        return self._beds(Bed.is_occupied == False, Bed.isolation_capable == True)  # noqa: E712

    def find_by_id(self, bed_id: int) -> Bed:
        bed = self.session.get(Bed, bed_id)
        if bed is None:
            raise BedNotFound(bed_id)
        return bed

    def _expire_cached(self, bed_id: int):
        cached = self.session.identity_map.get(identity_key(Bed, bed_id))
        if cached is not None:
            self.session.expire(cached)

    def claim(self, bed_id: int, resident_id: int) -> bool:
        """Mark a vacant bed occupied by ``resident_id``.

        A single conditional UPDATE guarded by ``is_occupied = false``; the
        affected row count is the answer. ``False`` means the bed was taken
        (or does not exist) when the write ran, whatever an earlier read said.
        """
        result = self.session.exec(
            update(Bed)
            .where(Bed.id == bed_id, Bed.is_occupied == False)  # noqa: E712
            .values(is_occupied=True, occupied_by=resident_id)
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(bed_id)
        claimed = result.rowcount == 1
        if claimed:
            logger.debug("Bed #%s claimed for resident #%s", bed_id, resident_id)
        else:
            logger.warning("Claim on bed #%s for resident #%s lost: bed not vacant", bed_id, resident_id)
        return claimed

    def release(self, bed_id: int):
        """Vacate a bed. Releasing a vacant bed is a no-op."""
        self.session.exec(
            update(Bed)
            .where(Bed.id == bed_id)
            .values(is_occupied=False, occupied_by=None)
            .execution_options(synchronize_session=False)
        )
        self._expire_cached(bed_id)
        logger.debug("Bed #%s released", bed_id)

    def occupancy_summary(self) -> dict:
        rows = self.session.exec(
            select(Ward.name, Bed.is_occupied)
            .join(Room, Room.ward_id == Ward.id)
            .join(Bed, Bed.room_id == Room.id)
            .order_by(Ward.id.asc())  # type: ignore[union-attr]
        ).all()

        wards: dict[str, dict[str, int]] = {}
        for ward_name, is_occupied in rows:
            counts = wards.setdefault(ward_name, {"total": 0, "available": 0, "occupied": 0})
            counts["total"] += 1
            if is_occupied:
                counts["occupied"] += 1
            else:
                counts["available"] += 1

        return {
            "total": sum(c["total"] for c in wards.values()),
            "available": sum(c["available"] for c in wards.values()),
            "occupied": sum(c["occupied"] for c in wards.values()),
            "wards": [{"ward_name": name, **counts} for name, counts in wards.items()],
        }
