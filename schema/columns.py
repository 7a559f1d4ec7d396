"""
schema.columns - Column specification types and shared option lists.

A ColumnSpec decides three things for one column of one table:
which form widget edits it, how an imported/posted string is coerced
before it is stored, and whether the form requires it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Widget(str, enum.Enum):
    TEXT     = "text"
    TEXTAREA = "textarea"
    NUMBER   = "number"
    DATE     = "date"
    YEAR     = "year"
    DROPDOWN = "dropdown"
    BOOLEAN  = "boolean"
    ARRAY    = "array"
    IMAGE    = "image"
    DOCUMENT = "document"
    PASSWORD = "password"
    EMAIL    = "email"


class Coercion(str, enum.Enum):
    NONE     = "none"
    NUMBER   = "number"
    ARRAY    = "array"
    DATETIME = "datetime"


# Reference sources for dropdowns populated from other tables
REF_CENTERS   = "centers"
REF_PROGRAMS  = "programs"
REF_EMPLOYEES = "employees"
REFERENCE_SOURCES = frozenset({REF_CENTERS, REF_PROGRAMS, REF_EMPLOYEES})

GENDERS          = ("Male", "Female", "Other")
BLOOD_GROUPS     = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
SESSION_TYPES    = ("Online", "Offline", "Hybrid")
STUDENT_STATUSES = ("Active", "Inactive", "Graduated", "On Leave")
EMPLOYEE_STATUSES = ("Active", "Inactive", "On Leave", "Terminated")
EMPLOYMENT_TYPES = ("Full-time", "Part-time", "Contract", "Temporary", "Intern")
DEPARTMENTS = (
    "Administration", "Education", "Finance", "Human Resources",
    "IT", "Operations", "Support Staff",
)
WEEKDAYS = (
    "Monday", "Tuesday", "Wednesday", "Thursday",
    "Friday", "Saturday", "Sunday",
)


@dataclass(frozen=True)
class ColumnSpec:
    name: str
    widget: Widget = Widget.TEXT
    coercion: Coercion = Coercion.NONE
    required: bool = False
    options: tuple[str, ...] | str | None = None   # static choices or a REF_* source
    editable: bool = True

    @property
    def label(self) -> str:
        return format_column_name(self.name)

    @property
    def reference(self) -> str | None:
        """Reference table name when options come from another table."""
        if isinstance(self.options, str):
            return self.options
        return None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "label": self.label,
            "widget": self.widget.value,
            "coercion": self.coercion.value,
            "required": self.required,
            "editable": self.editable,
            "options": list(self.options) if isinstance(self.options, tuple) else None,
            "reference": self.reference,
        }


def format_column_name(name: str) -> str:
    """'first_name' → 'First Name'."""
    return " ".join(w[:1].upper() + w[1:] for w in name.replace("_", " ").split())


# ── Shorthand constructors used by the entity tables ──────────────────

def text(name: str, *, required: bool = False) -> ColumnSpec:
    return ColumnSpec(name, required=required)


def email(name: str, *, required: bool = False) -> ColumnSpec:
    return ColumnSpec(name, Widget.EMAIL, required=required)


def textarea(name: str, *, required: bool = False) -> ColumnSpec:
    return ColumnSpec(name, Widget.TEXTAREA, required=required)


def number(name: str, *, required: bool = False, widget: Widget = Widget.NUMBER,
           options: tuple[str, ...] | str | None = None) -> ColumnSpec:
    return ColumnSpec(name, widget, Coercion.NUMBER, required=required, options=options)


def date(name: str, *, required: bool = False) -> ColumnSpec:
    return ColumnSpec(name, Widget.DATE, Coercion.DATETIME, required=required)


def choice(name: str, options: tuple[str, ...], *, required: bool = False) -> ColumnSpec:
    return ColumnSpec(name, Widget.DROPDOWN, required=required, options=options)


def reference(name: str, source: str, *, required: bool = False) -> ColumnSpec:
    return number(name, required=required, widget=Widget.DROPDOWN, options=source)


def array(name: str, options: tuple[str, ...] | None = None) -> ColumnSpec:
    return ColumnSpec(name, Widget.ARRAY, Coercion.ARRAY, options=options)


CREATED_AT = ColumnSpec("created_at", Widget.DATE, Coercion.DATETIME, editable=False)
