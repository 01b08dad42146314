import os
from datetime import date

from sqlmodel import Session, select

from database import engine, create_db
from models import (
    Bed,
    BedType,
    Gender,
    GenderPreference,
    GenderRestriction,
    Room,
    RoomType,
    Staff,
    StaffRole,
    Ward,
)
from services.errors import BedAllocationError
from services.residents import ResidentDirectory
from services.transfers import TransferOrchestrator

DEMO_STAFF = [
    {"name": "Manager Sahana", "role": StaffRole.MANAGER},
    {"name": "Dr. Priya", "role": StaffRole.DOCTOR},
    {"name": "Nurse Riya", "role": StaffRole.NURSE},
    {"name": "Nurse Arjun", "role": StaffRole.NURSE},
]

DEMO_WARDS = [
    {
        "name": "Ward 1",
        "description": "General care",
        "rooms": [
            {"room_number": "101", "room_type": RoomType.STANDARD, "gender_preference": GenderPreference.MIXED,
             "beds": [{"bed_number": "A"}, {"bed_number": "B", "bed_type": BedType.ELECTRIC}]},
            {"room_number": "102", "room_type": RoomType.STANDARD, "gender_preference": GenderPreference.FEMALE,
             "beds": [{"bed_number": "A", "gender_restriction": GenderRestriction.FEMALE},
                      {"bed_number": "B", "gender_restriction": GenderRestriction.FEMALE}]},
            {"room_number": "103", "room_type": RoomType.ISOLATION, "gender_preference": GenderPreference.MIXED,
             "beds": [{"bed_number": "A", "isolation_capable": True}]},
        ],
    },
    {
        "name": "Ward 2",
        "description": "High dependency",
        "rooms": [
            {"room_number": "201", "room_type": RoomType.STANDARD, "gender_preference": GenderPreference.MALE,
             "beds": [{"bed_number": "A", "gender_restriction": GenderRestriction.MALE},
                      {"bed_number": "B", "gender_restriction": GenderRestriction.MALE},
                      {"bed_number": "C", "gender_restriction": GenderRestriction.MALE, "bed_type": BedType.ELECTRIC},
                      {"bed_number": "D", "gender_restriction": GenderRestriction.MALE, "bed_type": BedType.ELECTRIC}]},
            {"room_number": "202", "room_type": RoomType.SPECIAL, "gender_preference": GenderPreference.MIXED,
             "beds": [{"bed_number": "A", "bed_type": BedType.SPECIAL, "isolation_capable": True}]},
        ],
    },
]

DEMO_RESIDENTS = [
    {"first_name": "Asha", "last_name": "Rao", "gender": Gender.FEMALE, "birth_date": date(1941, 3, 2)},
    {"first_name": "Vivek", "last_name": "Sharma", "gender": Gender.MALE, "birth_date": date(1938, 11, 19)},
    {"first_name": "Kavya", "last_name": "Nair", "gender": Gender.FEMALE, "birth_date": date(1945, 6, 8),
     "requires_isolation": True},
]


def run_seed(seed_residents: bool = False):
    create_db()

    with Session(engine) as session:
        existing_staff = session.exec(select(Staff)).first()
        existing_ward = session.exec(select(Ward)).first()
        if existing_staff or existing_ward:
            print("Database already seeded. Skipping.")
            return

        staff_by_name: dict[str, Staff] = {}
        for spec in DEMO_STAFF:
            member = Staff(name=spec["name"], role=spec["role"])
            session.add(member)
            session.commit()
            session.refresh(member)
            staff_by_name[member.name] = member
            print(f"Created staff: {member.name} ({member.role.value}) id={member.id}")

        for ward_index, ward_spec in enumerate(DEMO_WARDS, start=1):
            ward = Ward(name=ward_spec["name"], description=ward_spec["description"])
            session.add(ward)
            session.flush()
            for room_spec in ward_spec["rooms"]:
                room = Room(
                    ward_id=ward.id,
                    room_number=room_spec["room_number"],
                    room_type=room_spec["room_type"],
                    max_capacity=len(room_spec["beds"]),
                    gender_preference=room_spec["gender_preference"],
                )
                session.add(room)
                session.flush()
                for bed_spec in room_spec["beds"]:
                    session.add(
                        Bed(
                            room_id=room.id,
                            bed_code=f"W{ward_index}-R{room.room_number}-{bed_spec['bed_number']}",
                            **bed_spec,
                        )
                    )
            session.commit()
            print(f"Created {ward.name} with {len(ward_spec['rooms'])} rooms")

        if seed_residents:
            manager = staff_by_name["Manager Sahana"]
            orchestrator = TransferOrchestrator(session)
            for spec in DEMO_RESIDENTS:
                resident = ResidentDirectory(session).register(**spec)
                try:
                    transfer = orchestrator.admit_to_first_suitable(resident.id, manager.id, "admission")
                except BedAllocationError as exc:
                    session.rollback()
                    print(f"  Skipped {spec['first_name']} {spec['last_name']}: {exc.message}")
                    continue
                print(f"  Admitted {spec['first_name']} {spec['last_name']} to bed #{transfer.to_bed_id}")
        else:
            print("No demo residents seeded (clean slate).")

        print("Staff ids for the X-Staff-Id header:")
        for member in staff_by_name.values():
            print(f"  {member.id}: {member.name} ({member.role.value})")
        print("Seed complete.")


if __name__ == "__main__":
    run_seed(seed_residents=os.getenv("BEDWISE_SEED_RESIDENTS", "0") == "1")
