"""
db.models - SQLAlchemy ORM declarations.

Tables
------
centers, programs          - organisational structure.
students, educators,
employees, courses         - per-center data tables browsed and
                             bulk-imported from the dashboard.

Every table carries ``extra_json`` for columns an uploaded CSV brings
that the table does not declare, and ``created_at``.
"""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any, Mapping

from sqlalchemy import (
    Column, String, Integer, Date, DateTime, Text, JSON, ForeignKey,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class RecordMixin:
    """Dict <-> row conversion shared by all dashboard tables."""

    id         = Column(Integer, primary_key=True, autoincrement=True)
    extra_json = Column(Text, default="{}")
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    _internal = frozenset({"id", "extra_json"})

    @classmethod
    def field_names(cls) -> list[str]:
        """Column names a record may set directly."""
        return [c.key for c in cls.__table__.columns if c.key not in cls._internal]

    @classmethod
    def from_record(cls, record: Mapping[str, Any]):
        row = cls()
        row.apply(record)
        return row

    def apply(self, record: Mapping[str, Any]) -> None:
        """Set declared columns; anything else lands in extra_json."""
        columns = self.__table__.columns
        extra = self.extras()
        for key, value in record.items():
            if key == "id":
                continue
            if key in columns and key not in self._internal:
                setattr(self, key, _to_column_value(columns[key], value))
            elif value is None:
                extra.pop(key, None)
            else:
                extra[key] = value
        self.extra_json = json.dumps(extra, ensure_ascii=False) if extra else "{}"

    def extras(self) -> dict:
        if not self.extra_json:
            return {}
        try:
            return json.loads(self.extra_json)
        except (json.JSONDecodeError, TypeError):
            return {}

    def to_dict(self) -> dict:
        d: dict[str, Any] = {}
        for col in self.__table__.columns:
            if col.key == "extra_json":
                continue
            val = getattr(self, col.key)
            if isinstance(val, (datetime, date)):
                val = val.isoformat()
            d[col.key] = val
        d["extra"] = self.extras()
        return d


def _to_column_value(column, value: Any) -> Any:
    """Convert a coerced record value to what the column type accepts."""
    if value is None:
        return None
    if isinstance(column.type, DateTime) and isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            return value
    if isinstance(column.type, Date) and isinstance(value, str):
        try:
            return datetime.fromisoformat(value).date()
        except ValueError:
            return value
    if isinstance(column.type, Integer) and isinstance(value, float) and value.is_integer():
        return int(value)
    return value


class Center(RecordMixin, Base):
    __tablename__ = "centers"

    center_id = Column(Integer, unique=True, nullable=False, index=True)
    name      = Column(String(200), nullable=False)
    location  = Column(String(300), default="")


class Program(RecordMixin, Base):
    __tablename__ = "programs"

    program_id  = Column(Integer, unique=True, nullable=False, index=True)
    center_id   = Column(Integer, ForeignKey("centers.center_id"), index=True)
    name        = Column(String(200), nullable=False)
    description = Column(Text, default="")


class Student(RecordMixin, Base):
    __tablename__ = "students"

    # ── Identity ───────────────────────────────────────────────────────
    student_id      = Column(Integer, unique=True, index=True)
    first_name      = Column(String(100), nullable=False)
    last_name       = Column(String(100), nullable=False)
    gender          = Column(String(20))
    dob             = Column(Date)
    photo           = Column(String(500))
    enrollment_year = Column(Integer)
    status          = Column(String(30))
    student_email   = Column(String(200))

    # ── Programme / scheduling ─────────────────────────────────────────
    center_id       = Column(Integer, index=True)
    program_id      = Column(Integer, index=True)
    program_2_id    = Column(Integer)
    number_of_sessions = Column(Integer)
    timings         = Column(JSON)
    days_of_week    = Column(JSON)
    session_type    = Column(String(20))
    educator_employee_id           = Column(Integer)
    secondary_educator_employee_id = Column(Integer)

    # ── Family / health / contact ──────────────────────────────────────
    fathers_name       = Column(String(200))
    mothers_name       = Column(String(200))
    blood_group        = Column(String(5))
    allergies          = Column(Text)
    contact_number     = Column(String(30))
    alt_contact_number = Column(String(30))
    parents_email      = Column(String(200))
    address            = Column(Text)
    transport          = Column(String(10))

    # ── Notes ──────────────────────────────────────────────────────────
    strengths = Column(Text)
    weakness  = Column(Text)
    comments  = Column(Text)


class Educator(RecordMixin, Base):
    __tablename__ = "educators"

    center_id       = Column(Integer, index=True)
    employee_id     = Column(Integer, index=True)
    name            = Column(String(200), nullable=False)
    designation     = Column(String(100))
    email           = Column(String(200))
    phone           = Column(String(30))
    dob             = Column(Date)
    date_of_joining = Column(Date)
    work_location   = Column(String(200))
    photo           = Column(String(500))


class Employee(RecordMixin, Base):
    __tablename__ = "employees"

    employee_id     = Column(Integer, unique=True, index=True)
    name            = Column(String(200), nullable=False)
    gender          = Column(String(20))
    designation     = Column(String(100))
    department      = Column(String(100))
    employment_type = Column(String(30))
    email           = Column(String(200))
    phone           = Column(String(30))
    date_of_birth   = Column(Date)
    date_of_joining = Column(Date)
    status          = Column(String(30))
    emergency_contact_name = Column(String(200))
    emergency_contact      = Column(String(30))
    profile_picture = Column(String(500))
    lor             = Column(String(500))
    center_id       = Column(Integer, index=True)


class Course(RecordMixin, Base):
    __tablename__ = "courses"

    name           = Column(String(200), nullable=False)
    duration_weeks = Column(Integer)
    max_students   = Column(Integer)
    description    = Column(Text)
    start_date     = Column(Date)
    end_date       = Column(Date)
    center_id      = Column(Integer, index=True)
    program_id     = Column(Integer, index=True)


MODELS: dict[str, type[RecordMixin]] = {
    "centers":   Center,
    "programs":  Program,
    "students":  Student,
    "educators": Educator,
    "employees": Employee,
    "courses":   Course,
}


def model_for(kind: str) -> type[RecordMixin]:
    """Raises KeyError for an unknown table."""
    return MODELS[kind]
