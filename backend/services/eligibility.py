from __future__ import annotations

from models import Bed, GenderRestriction, Resident
from services.bed_registry import BedRegistry
from services.errors import NoSuitableBed


def _value(raw) -> str:
    return getattr(raw, "value", raw)


def unsuitability_reasons(bed: Bed, resident: Resident) -> list[str]:
    """Placement rules the bed breaks for this resident; empty when suitable.

    Occupancy is not considered here, the registry owns vacancy.
    """
    reasons: list[str] = []

    restriction = _value(bed.gender_restriction) or GenderRestriction.NONE.value
    if restriction != GenderRestriction.NONE.value and restriction != _value(resident.gender):
        reasons.append(f"bed is restricted to {restriction} residents")

    if resident.requires_isolation and not bed.isolation_capable:
        reasons.append("resident requires isolation but bed is not isolation-capable")

    return reasons


def is_suitable(bed: Bed, resident: Resident) -> bool:
    return not unsuitability_reasons(bed, resident)


def find_suitable(registry: BedRegistry, resident: Resident) -> list[Bed]:
    return [bed for bed in registry.find_available() if is_suitable(bed, resident)]


def first_suitable(registry: BedRegistry, resident: Resident) -> Bed:
    suitable = find_suitable(registry, resident)
    if not suitable:
        raise NoSuitableBed(resident.id)
    return suitable[0]
