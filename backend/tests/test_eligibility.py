import pytest

from conftest import add_resident
from models import Bed, Gender, GenderRestriction, Resident
from services.bed_registry import BedRegistry
from services.eligibility import find_suitable, first_suitable, is_suitable, unsuitability_reasons
from services.errors import NoSuitableBed


def _bed(restriction=GenderRestriction.NONE, isolation=False) -> Bed:
    return Bed(room_id=1, bed_number="A", gender_restriction=restriction, isolation_capable=isolation)


def _resident(gender=Gender.FEMALE, isolation=False) -> Resident:
    return Resident(first_name="R", last_name="One", gender=gender, requires_isolation=isolation)


@pytest.mark.parametrize(
    ("bed", "resident", "expected"),
    [
        (_bed(GenderRestriction.MALE), _resident(Gender.FEMALE), False),
        (_bed(GenderRestriction.FEMALE), _resident(Gender.MALE), False),
        (_bed(GenderRestriction.MALE), _resident(Gender.MALE), True),
        (_bed(GenderRestriction.NONE), _resident(Gender.MALE), True),
        (_bed(GenderRestriction.NONE), _resident(Gender.FEMALE), True),
        (_bed(isolation=False), _resident(isolation=True), False),
        (_bed(isolation=True), _resident(isolation=False), True),
        (_bed(isolation=True), _resident(isolation=True), True),
    ],
)
def test_is_suitable_rules(bed, resident, expected):
    assert is_suitable(bed, resident) is expected


def test_unsuitability_reasons_name_every_failed_rule():
    reasons = unsuitability_reasons(
        _bed(GenderRestriction.MALE, isolation=False),
        _resident(Gender.FEMALE, isolation=True),
    )
    assert len(reasons) == 2
    assert "Male" in reasons[0]
    assert "isolation" in reasons[1]


def test_occupied_bed_is_not_excluded_by_the_predicate():
    bed = _bed()
    bed.is_occupied = True
    assert is_suitable(bed, _resident()) is True


def test_find_suitable_keeps_registry_order(session, layout):
    resident = session.get(Resident, add_resident(session, gender=Gender.FEMALE))

    suitable = find_suitable(BedRegistry(session), resident)

    assert [bed.id for bed in suitable] == [layout["b1"], layout["b3"], layout["b4"]]
    assert first_suitable(BedRegistry(session), resident).id == layout["b1"]


def test_find_suitable_for_isolation_resident(session, layout):
    resident = session.get(Resident, add_resident(session, gender=Gender.MALE, requires_isolation=True))

    assert [bed.id for bed in find_suitable(BedRegistry(session), resident)] == [layout["b3"]]


def test_first_suitable_raises_when_nothing_fits(session, layout):
    registry = BedRegistry(session)
    registry.claim(layout["b3"], 999)
    session.commit()
    resident = session.get(Resident, add_resident(session, requires_isolation=True))

    with pytest.raises(NoSuitableBed) as exc_info:
        first_suitable(registry, resident)
    assert exc_info.value.context["resident_id"] == resident.id
