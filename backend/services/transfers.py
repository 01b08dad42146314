from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable

from sqlmodel import Session

from models import Bed, BedTransfer, Resident, utc_now
from services.audit import TransferAuditLog
from services.bed_registry import BedRegistry
from services.eligibility import first_suitable, unsuitability_reasons
from services.errors import (
    BedAllocationError,
    BedClaimConflict,
    BedOccupied,
    BedUnsuitable,
    NoOpTransfer,
    PersistenceFailure,
    PlacementConflict,
    ResidentDischarged,
    TransferFailed,
    TransferIntegrityError,
)
from services.residents import ResidentDirectory
from state_machine import TransferRun, TransferState

logger = logging.getLogger("bedwise.transfers")


@dataclass
class TransferValidation:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    codes: list[str] = field(default_factory=list)

    def add_error(self, error: BedAllocationError):
        self.errors.append(error.message)
        self.codes.append(error.code)
        self.valid = False

    @property
    def error_message(self) -> str:
        return ", ".join(self.errors)


class TransferOrchestrator:
    """Runs admissions, transfers and discharges as single units of work.

    The session is the unit of work: it is committed once every step has been
    applied and rolled back on any failure after validation. Collaborators and
    the clock are injectable so failure paths can be driven from tests.
    """

    def __init__(
        self,
        session: Session,
        *,
        registry: BedRegistry | None = None,
        residents: ResidentDirectory | None = None,
        audit: TransferAuditLog | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.session = session
        self.registry = registry or BedRegistry(session)
        self.residents = residents or ResidentDirectory(session)
        self.audit = audit or TransferAuditLog(session)
        self.clock = clock

    def _validate(self, resident_id: int, bed_id: int) -> tuple[Resident, Bed]:
        resident = self.residents.get(resident_id)
        if resident.is_discharged:
            raise ResidentDischarged(resident_id)

        bed = self.registry.find_by_id(bed_id)
        if resident.current_bed_id == bed.id:
            raise NoOpTransfer(resident_id, bed_id)
        if bed.is_occupied:
            raise BedOccupied(bed.id, bed.occupied_by)

        reasons = unsuitability_reasons(bed, resident)
        if reasons:
            raise BedUnsuitable(bed.id, resident_id, reasons)

        return resident, bed

    def validate_transfer(self, resident_id: int, bed_id: int) -> TransferValidation:
        validation = TransferValidation()
        try:
            self._validate(resident_id, bed_id)
        except BedAllocationError as exc:
            validation.add_error(exc)
        return validation

    def _compensate(self, run: TransferRun, resident_id: int):
        if run.from_bed_id is None:
            return
        if not self.registry.claim(run.from_bed_id, resident_id):
            logger.critical(
                "Compensation failed: resident #%s lost bed #%s and could not be returned to bed #%s",
                resident_id,
                run.to_bed_id,
                run.from_bed_id,
            )
            raise TransferIntegrityError(resident_id, run.from_bed_id, run.to_bed_id)
        logger.warning(
            "Resident #%s returned to bed #%s after losing the claim on bed #%s",
            resident_id,
            run.from_bed_id,
            run.to_bed_id,
        )

    def _apply(
        self,
        run: TransferRun,
        resident: Resident,
        bed: Bed,
        staff_id: int,
        reason: str,
    ) -> BedTransfer:
        run.advance(TransferState.RELEASING)
        run.from_bed_id = resident.current_bed_id
        if run.from_bed_id is not None:
            self.registry.release(run.from_bed_id)

        run.advance(TransferState.CLAIMING)
        if not self.registry.claim(bed.id, resident.id):
            self._compensate(run, resident.id)
            raise BedClaimConflict(bed.id, resident.id)

        run.advance(TransferState.UPDATING_RESIDENT)
        if not self.residents.swap_current_bed(run.resident_id, run.from_bed_id, bed.id):
            raise PlacementConflict(run.resident_id, run.from_bed_id)

        run.advance(TransferState.LOGGING)
        now = self.clock()
        return self.audit.append(
            BedTransfer(
                resident_id=run.resident_id,
                from_bed_id=run.from_bed_id,
                to_bed_id=bed.id,
                staff_id=staff_id,
                transfer_time=now,
                reason=reason,
                created_at=now,
            )
        )

    def admit_or_transfer(
        self,
        resident_id: int,
        new_bed_id: int,
        staff_id: int,
        reason: str,
    ) -> BedTransfer:
        run = TransferRun(resident_id, new_bed_id)
        try:
            resident, bed = self._validate(resident_id, new_bed_id)
        except BedAllocationError as exc:
            run.abort()
            logger.info("Transfer of resident #%s to bed #%s rejected: %s", resident_id, new_bed_id, exc.message)
            raise

        try:
            record = self._apply(run, resident, bed, staff_id, reason)
            self.session.commit()
        except BedAllocationError:
            self.session.rollback()
            run.abort()
            raise
        except Exception as exc:
            self.session.rollback()
            run.abort()
            logger.exception(
                "Transfer of resident #%s to bed #%s rolled back during %s",
                resident_id,
                new_bed_id,
                run.history[-2].value,
            )
            raise TransferFailed(resident_id, new_bed_id, str(exc) or type(exc).__name__) from exc

        run.advance(TransferState.COMMITTED)
        self.session.refresh(record)
        logger.info(
            "Resident #%s %s bed #%s by staff #%s (transfer #%s)",
            resident_id,
            "admitted to" if run.from_bed_id is None else f"moved from bed #{run.from_bed_id} to",
            new_bed_id,
            staff_id,
            record.id,
        )
        return record

    def admit_to_first_suitable(self, resident_id: int, staff_id: int, reason: str) -> BedTransfer:
        resident = self.residents.get(resident_id)
        if resident.is_discharged:
            raise ResidentDischarged(resident_id)
        bed = first_suitable(self.registry, resident)
        return self.admit_or_transfer(resident_id, bed.id, staff_id, reason)

    def discharge(self, resident_id: int, on: date | None = None) -> Resident:
        resident = self.residents.get(resident_id)
        if resident.is_discharged:
            raise ResidentDischarged(resident_id)

        bed_id = resident.current_bed_id
        try:
            if not self.residents.swap_current_bed(resident_id, bed_id, None):
                raise PlacementConflict(resident_id, bed_id)
            if bed_id is not None:
                self.registry.release(bed_id)
            self.residents.mark_discharged(resident_id, on or self.clock().date())
            self.session.commit()
        except BedAllocationError:
            self.session.rollback()
            raise
        except Exception as exc:
            self.session.rollback()
            logger.exception("Discharge of resident #%s rolled back", resident_id)
            raise PersistenceFailure(
                f"Discharge of resident #{resident_id} was rolled back: {exc}",
                resident_id=resident_id,
                bed_id=bed_id,
            ) from exc

        self.session.refresh(resident)
        logger.info("Resident #%s discharged, bed #%s released", resident_id, bed_id)
        return resident
