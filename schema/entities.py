"""
schema.entities - Per-table schema registry.

One EntitySchema per dashboard table.  Everything that used to be
decided by matching substrings of a column name (widget choice,
type coercion, required-ness, import validation) is looked up here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from schema.columns import (
    ColumnSpec, Coercion, Widget, CREATED_AT,
    REF_CENTERS, REF_PROGRAMS, REF_EMPLOYEES,
    GENDERS, BLOOD_GROUPS, SESSION_TYPES, STUDENT_STATUSES,
    EMPLOYEE_STATUSES, EMPLOYMENT_TYPES, DEPARTMENTS, WEEKDAYS,
    text, email, textarea, number, date, choice, reference, array,
)


@dataclass(frozen=True)
class EntitySchema:
    kind: str
    label: str
    columns: tuple[ColumnSpec, ...]
    import_required: tuple[str, ...] = ()
    unique_column: Optional[str] = None
    validate_on_import: bool = False
    list_columns: tuple[str, ...] = ()
    _by_name: dict[str, ColumnSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_by_name", {c.name: c for c in self.columns})

    # ── Lookups ────────────────────────────────────────────────────────

    def column(self, name: str) -> ColumnSpec:
        """Return the spec for *name*; unknown columns are plain text."""
        return self._by_name.get(name) or ColumnSpec(name)

    def has_column(self, name: str) -> bool:
        return name in self._by_name

    @property
    def column_names(self) -> list[str]:
        return [c.name for c in self.columns]

    def columns_with(self, coercion: Coercion) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns if c.coercion is coercion)

    @property
    def numeric_columns(self) -> tuple[str, ...]:
        return self.columns_with(Coercion.NUMBER)

    @property
    def email_columns(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns if c.widget is Widget.EMAIL)

    @property
    def form_required(self) -> tuple[str, ...]:
        return tuple(c.name for c in self.columns if c.required)

    @property
    def display_columns(self) -> list[str]:
        return list(self.list_columns) if self.list_columns else self.column_names

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "label": self.label,
            "columns": [c.to_dict() for c in self.columns],
            "import_required": list(self.import_required),
            "unique_column": self.unique_column,
            "validate_on_import": self.validate_on_import,
            "list_columns": self.display_columns,
        }


# ── Tables ────────────────────────────────────────────────────────────

CENTERS = EntitySchema(
    kind="centers",
    label="Centers",
    columns=(
        number("center_id", required=True),
        text("name", required=True),
        text("location"),
        CREATED_AT,
    ),
    unique_column="center_id",
)

PROGRAMS = EntitySchema(
    kind="programs",
    label="Programs",
    columns=(
        number("program_id", required=True),
        reference("center_id", REF_CENTERS, required=True),
        text("name", required=True),
        textarea("description"),
        CREATED_AT,
    ),
    unique_column="program_id",
)

STUDENTS = EntitySchema(
    kind="students",
    label="Students",
    columns=(
        text("first_name", required=True),
        text("last_name", required=True),
        choice("gender", GENDERS, required=True),
        date("dob", required=True),
        ColumnSpec("photo", Widget.IMAGE),
        number("student_id", required=True),
        number("enrollment_year", required=True, widget=Widget.YEAR),
        choice("status", STUDENT_STATUSES, required=True),
        email("student_email", required=True),
        reference("program_id", REF_PROGRAMS, required=True),
        reference("program_2_id", REF_PROGRAMS),
        number("number_of_sessions"),
        array("timings"),
        array("days_of_week", WEEKDAYS),
        reference("educator_employee_id", REF_EMPLOYEES, required=True),
        reference("secondary_educator_employee_id", REF_EMPLOYEES),
        choice("session_type", SESSION_TYPES),
        text("fathers_name"),
        text("mothers_name"),
        choice("blood_group", BLOOD_GROUPS),
        textarea("allergies"),
        text("contact_number", required=True),
        text("alt_contact_number"),
        email("parents_email"),
        textarea("address"),
        choice("transport", ("Yes", "No")),
        textarea("strengths"),
        textarea("weakness"),
        textarea("comments"),
        reference("center_id", REF_CENTERS, required=True),
        CREATED_AT,
    ),
    import_required=("first_name", "last_name", "student_email", "program_id", "center_id"),
    unique_column="student_id",
    validate_on_import=True,
    list_columns=("student_id", "first_name", "last_name", "photo",
                  "dob", "contact_number", "student_email"),
)

EDUCATORS = EntitySchema(
    kind="educators",
    label="Educators",
    columns=(
        reference("center_id", REF_CENTERS, required=True),
        reference("employee_id", REF_EMPLOYEES, required=True),
        text("name", required=True),
        text("designation", required=True),
        email("email", required=True),
        text("phone", required=True),
        date("dob", required=True),
        date("date_of_joining", required=True),
        text("work_location", required=True),
        ColumnSpec("photo", Widget.IMAGE),
        CREATED_AT,
    ),
)

EMPLOYEES = EntitySchema(
    kind="employees",
    label="Employees",
    columns=(
        number("employee_id", required=True),
        text("name", required=True),
        choice("gender", GENDERS, required=True),
        text("designation", required=True),
        choice("department", DEPARTMENTS, required=True),
        choice("employment_type", EMPLOYMENT_TYPES, required=True),
        email("email", required=True),
        text("phone", required=True),
        date("date_of_birth", required=True),
        date("date_of_joining", required=True),
        choice("status", EMPLOYEE_STATUSES),
        text("emergency_contact_name", required=True),
        text("emergency_contact", required=True),
        ColumnSpec("profile_picture", Widget.IMAGE),
        ColumnSpec("lor", Widget.DOCUMENT),
        reference("center_id", REF_CENTERS, required=True),
        CREATED_AT,
    ),
    unique_column="employee_id",
)

COURSES = EntitySchema(
    kind="courses",
    label="Courses",
    columns=(
        text("name", required=True),
        number("duration_weeks"),
        number("max_students"),
        textarea("description"),
        date("start_date"),
        date("end_date"),
        reference("center_id", REF_CENTERS, required=True),
        reference("program_id", REF_PROGRAMS),
        CREATED_AT,
    ),
)

_REGISTRY: dict[str, EntitySchema] = {
    s.kind: s for s in (CENTERS, PROGRAMS, STUDENTS, EDUCATORS, EMPLOYEES, COURSES)
}

# Tables offered for browsing / CSV upload under a center or program
DATA_TABLES = ("students", "educators", "employees", "courses")


# ── Public helpers ────────────────────────────────────────────────────

def get_schema(kind: str) -> EntitySchema:
    """Raises KeyError for an unknown table."""
    return _REGISTRY[kind]


def entity_kinds() -> list[str]:
    return list(_REGISTRY)


def column_spec(kind: str, name: str) -> ColumnSpec:
    return get_schema(kind).column(name)


def expected_columns(kind: str) -> list[str]:
    """Columns to list on the upload page as the expected CSV header."""
    return [c for c in get_schema(kind).column_names if c != "created_at"]
