from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    CONFLICT = "CONFLICT"
    INTEGRITY = "INTEGRITY"
    PERSISTENCE = "PERSISTENCE"


HTTP_STATUS_FOR_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.PRECONDITION_FAILED: 422,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTEGRITY: 500,
    ErrorKind.PERSISTENCE: 503,
}


class BedAllocationError(Exception):
    """Base for every failure the allocation core reports to its callers.

    ``code`` names the rule that failed, ``context`` carries the ids involved
    so a caller can render an actionable message.
    """

    kind: ErrorKind = ErrorKind.PRECONDITION_FAILED
    code: str = "BED_ALLOCATION_ERROR"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def status_code(self) -> int:
        return HTTP_STATUS_FOR_KIND[self.kind]

    def to_dict(self) -> dict:
        return {
            "error": self.kind.value,
            "code": self.code,
            "detail": self.message,
            "context": self.context,
        }


class ResidentNotFound(BedAllocationError):
    kind = ErrorKind.NOT_FOUND
    code = "RESIDENT_NOT_FOUND"

    def __init__(self, resident_id: int):
        super().__init__(f"Resident #{resident_id} not found", resident_id=resident_id)


class BedNotFound(BedAllocationError):
    kind = ErrorKind.NOT_FOUND
    code = "BED_NOT_FOUND"

    def __init__(self, bed_id: int):
        super().__init__(f"Bed #{bed_id} not found", bed_id=bed_id)


class ResidentDischarged(BedAllocationError):
    code = "RESIDENT_DISCHARGED"

    def __init__(self, resident_id: int):
        super().__init__(
            f"Resident #{resident_id} has been discharged and cannot be placed",
            resident_id=resident_id,
        )


class BedOccupied(BedAllocationError):
    code = "BED_OCCUPIED"

    def __init__(self, bed_id: int, occupied_by: int | None = None, message: str | None = None):
        super().__init__(
            message or f"Bed #{bed_id} is already occupied",
            bed_id=bed_id,
            occupied_by=occupied_by,
        )


class BedClaimConflict(BedOccupied):
    """Another transfer claimed the bed between validation and claim."""

    kind = ErrorKind.CONFLICT
    code = "BED_CLAIM_CONFLICT"

    def __init__(self, bed_id: int, resident_id: int):
        super().__init__(
            bed_id,
            message=(
                f"Bed #{bed_id} was claimed by another transfer before resident "
                f"#{resident_id} could be placed; re-validate and retry"
            ),
        )
        self.context["resident_id"] = resident_id


class PlacementConflict(BedAllocationError):
    """The resident was moved or discharged by another caller mid-operation."""

    kind = ErrorKind.CONFLICT
    code = "PLACEMENT_CONFLICT"

    def __init__(self, resident_id: int, expected_bed_id: int | None):
        super().__init__(
            f"Resident #{resident_id} no longer occupies bed #{expected_bed_id}; "
            "another operation moved them first. Re-validate and retry",
            resident_id=resident_id,
            expected_bed_id=expected_bed_id,
        )


class BedUnsuitable(BedAllocationError):
    code = "BED_UNSUITABLE"

    def __init__(self, bed_id: int, resident_id: int, reasons: list[str]):
        super().__init__(
            f"Bed #{bed_id} is not suitable for resident #{resident_id}: {'; '.join(reasons)}",
            bed_id=bed_id,
            resident_id=resident_id,
            reasons=reasons,
        )


class NoOpTransfer(BedAllocationError):
    code = "NO_OP_TRANSFER"

    def __init__(self, resident_id: int, bed_id: int):
        super().__init__(
            f"Resident #{resident_id} is already in bed #{bed_id}",
            resident_id=resident_id,
            bed_id=bed_id,
        )


class NoSuitableBed(BedAllocationError):
    code = "NO_SUITABLE_BED"

    def __init__(self, resident_id: int):
        super().__init__(
            f"No vacant bed satisfies the placement constraints of resident #{resident_id}",
            resident_id=resident_id,
        )


class TransferIntegrityError(BedAllocationError):
    """Compensation failed; the resident may have been left without a bed."""

    kind = ErrorKind.INTEGRITY
    code = "TRANSFER_INTEGRITY_ERROR"

    def __init__(self, resident_id: int, from_bed_id: int | None, to_bed_id: int):
        super().__init__(
            f"Resident #{resident_id} could not be placed in bed #{to_bed_id} and could not be "
            f"returned to bed #{from_bed_id}; operator attention required",
            resident_id=resident_id,
            from_bed_id=from_bed_id,
            to_bed_id=to_bed_id,
        )


class PersistenceFailure(BedAllocationError):
    kind = ErrorKind.PERSISTENCE
    code = "PERSISTENCE_FAILURE"


class TransferFailed(PersistenceFailure):
    code = "TRANSFER_FAILED"

    def __init__(self, resident_id: int, to_bed_id: int, cause: str):
        super().__init__(
            f"Transfer of resident #{resident_id} to bed #{to_bed_id} was rolled back: {cause}",
            resident_id=resident_id,
            to_bed_id=to_bed_id,
        )
