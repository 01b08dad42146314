from __future__ import annotations

from sqlmodel import Session, select

from models import Bed, Resident


def occupancy_violations(session: Session) -> list[str]:
    """Report every bed/resident pair that disagrees about occupancy."""
    beds = session.exec(select(Bed).order_by(Bed.id.asc())).all()  # type: ignore[union-attr]
    residents = session.exec(select(Resident).order_by(Resident.id.asc())).all()  # type: ignore[union-attr]
    bed_ids = {bed.id for bed in beds}
    violations: list[str] = []

    holders: dict[int, list[int]] = {}
    for resident in residents:
        if resident.current_bed_id is None:
            continue
        if resident.is_discharged:
            violations.append(
                f"discharged resident #{resident.id} still references bed #{resident.current_bed_id}"
            )
        if resident.current_bed_id not in bed_ids:
            violations.append(
                f"resident #{resident.id} references missing bed #{resident.current_bed_id}"
            )
            continue
        holders.setdefault(resident.current_bed_id, []).append(resident.id)

    for bed in beds:
        claimants = holders.get(bed.id, [])
        if bed.is_occupied != (bed.occupied_by is not None):
            violations.append(
                f"bed #{bed.id} occupancy flag is {bed.is_occupied} but occupant is {bed.occupied_by}"
            )
        if len(claimants) > 1:
            violations.append(
                f"bed #{bed.id} is referenced by residents {', '.join(f'#{rid}' for rid in claimants)}"
            )
        if bed.is_occupied and bed.occupied_by not in claimants:
            violations.append(
                f"bed #{bed.id} is occupied by resident #{bed.occupied_by} who does not reference it"
            )
        if claimants and not bed.is_occupied:
            violations.append(
                f"bed #{bed.id} is vacant but referenced by resident #{claimants[0]}"
            )

    return violations
