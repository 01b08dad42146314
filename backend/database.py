import logging
import os
from pathlib import Path

from sqlalchemy import inspect
from sqlmodel import SQLModel, Session, create_engine

DB_FILE = Path(os.getenv("BEDWISE_DB_FILE", str(Path(__file__).resolve().parent / "bedwise.db")))
DATABASE_URL = f"sqlite:///{DB_FILE}"

engine = create_engine(DATABASE_URL, echo=False)

logger = logging.getLogger("bedwise.database")


REQUIRED_COLUMNS = {
    "staff": {"id", "name", "role", "is_active", "created_at"},
    "ward": {"id", "name", "description", "created_at"},
    "room": {
        "id",
        "ward_id",
        "room_number",
        "room_type",
        "max_capacity",
        "gender_preference",
        "is_active",
        "created_at",
    },
    "bed": {
        "id",
        "room_id",
        "bed_number",
        "bed_code",
        "bed_type",
        "is_occupied",
        "occupied_by",
        "gender_restriction",
        "isolation_capable",
        "last_cleaned_at",
    },
    "resident": {
        "id",
        "first_name",
        "last_name",
        "gender",
        "birth_date",
        "requires_isolation",
        "admission_date",
        "discharge_date",
        "current_bed_id",
        "created_at",
    },
    "bedtransfer": {
        "id",
        "resident_id",
        "from_bed_id",
        "to_bed_id",
        "staff_id",
        "transfer_time",
        "reason",
        "created_at",
    },
}


def _schema_needs_rebuild() -> bool:
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())

    for table_name, required_cols in REQUIRED_COLUMNS.items():
        if table_name not in existing_tables:
            continue
        existing_cols = {col["name"] for col in inspector.get_columns(table_name)}
        if not required_cols.issubset(existing_cols):
            return True

    return False


def create_db():
    if _schema_needs_rebuild():
        logger.warning("Schema mismatch detected. Rebuilding local SQLite schema at %s", DB_FILE)
        SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)


def get_session():
    with Session(engine) as session:
        yield session
