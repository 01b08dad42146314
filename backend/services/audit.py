from __future__ import annotations

from datetime import datetime, timedelta

from sqlmodel import Session, select

from models import BedTransfer, utc_now

STATS_WINDOW_DAYS = 7


class TransferAuditLog:
    """Append-only history of admissions and bed transfers."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, record: BedTransfer) -> BedTransfer:
        # Write-once: errors propagate so the enclosing transfer rolls back.
        if record.id is not None:
            raise ValueError(f"Transfer record #{record.id} has already been written")
        self.session.add(record)
        self.session.flush()
        return record

    def _newest_first(self, query):
        return query.order_by(
            BedTransfer.transfer_time.desc(),  # type: ignore[union-attr]
            BedTransfer.id.desc(),  # type: ignore[union-attr]
        )

    def history_for_resident(self, resident_id: int) -> list[BedTransfer]:
        query = select(BedTransfer).where(BedTransfer.resident_id == resident_id)
        return list(self.session.exec(self._newest_first(query)).all())

    def recent_by_staff(self, staff_id: int, limit: int) -> list[BedTransfer]:
        if limit < 1:
            raise ValueError("limit must be at least 1")
        query = select(BedTransfer).where(BedTransfer.staff_id == staff_id)
        return list(self.session.exec(self._newest_first(query).limit(limit)).all())

    def transfer_stats(self, now: datetime | None = None) -> dict:
        now = now or utc_now()
        start_of_today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        window_start = start_of_today - timedelta(days=STATS_WINDOW_DAYS)

        recent = self.session.exec(
            select(BedTransfer).where(BedTransfer.transfer_time >= window_start)
        ).all()
        today = [record for record in recent if record.transfer_time >= start_of_today]

        return {
            "transfers_today": len(today),
            "transfers_this_week": len(recent),
            "admissions_today": sum(1 for record in today if record.is_admission),
            "window_start": window_start.isoformat(),
        }
