from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from sqlmodel import SQLModel, Field


def utc_now() -> datetime:
    """Naive UTC timestamp; SQLite columns here carry no zone."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"


class GenderRestriction(str, Enum):
    NONE = "None"
    MALE = "Male"
    FEMALE = "Female"


class BedType(str, Enum):
    STANDARD = "Standard"
    ELECTRIC = "Electric"
    SPECIAL = "Special"


class RoomType(str, Enum):
    STANDARD = "Standard"
    ISOLATION = "Isolation"
    SPECIAL = "Special"


class GenderPreference(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    MIXED = "Mixed"


class StaffRole(str, Enum):
    MANAGER = "manager"
    DOCTOR = "doctor"
    NURSE = "nurse"


class Staff(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    role: StaffRole
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)


class Ward(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(unique=True, index=True)
    description: str = ""
    created_at: datetime = Field(default_factory=utc_now)


class Room(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    ward_id: int = Field(foreign_key="ward.id", index=True)
    room_number: str
    room_type: RoomType = RoomType.STANDARD
    max_capacity: int = 1
    gender_preference: GenderPreference = GenderPreference.MIXED
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)


class Bed(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    room_id: int = Field(foreign_key="room.id", index=True)
    bed_number: str
    bed_code: Optional[str] = Field(default=None, index=True)
    bed_type: BedType = BedType.STANDARD
    is_occupied: bool = Field(default=False, index=True)
    occupied_by: Optional[int] = Field(default=None, index=True)
    gender_restriction: GenderRestriction = GenderRestriction.NONE
    isolation_capable: bool = False
    last_cleaned_at: Optional[datetime] = None


class Resident(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    first_name: str
    last_name: str
    gender: Gender
    birth_date: Optional[date] = None
    requires_isolation: bool = False
    admission_date: date = Field(default_factory=date.today)
    discharge_date: Optional[date] = None
    current_bed_id: Optional[int] = Field(default=None, foreign_key="bed.id")
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_discharged(self) -> bool:
        return self.discharge_date is not None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class BedTransfer(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    resident_id: int = Field(foreign_key="resident.id", index=True)
    from_bed_id: Optional[int] = Field(default=None, foreign_key="bed.id")
    to_bed_id: int = Field(foreign_key="bed.id")
    staff_id: int = Field(foreign_key="staff.id", index=True)
    transfer_time: datetime = Field(index=True)
    reason: str = ""
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_admission(self) -> bool:
        return self.from_bed_id is None
