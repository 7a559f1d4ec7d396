"""
services.directory_service - Centers, programs, dashboard totals and
dropdown options drawn from reference tables.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from db.models import Center, Program, Student, Educator, Employee
from schema import ColumnSpec
from schema.columns import REF_CENTERS, REF_PROGRAMS, REF_EMPLOYEES


class DirectoryService:

    @staticmethod
    def centers(session: Session) -> list[Center]:
        return session.query(Center).order_by(Center.name).all()

    @staticmethod
    def center(session: Session, center_id: int) -> Center | None:
        return session.query(Center).filter(Center.center_id == center_id).one_or_none()

    @staticmethod
    def programs(session: Session, center_id: int | None = None) -> list[Program]:
        query = session.query(Program)
        if center_id is not None:
            query = query.filter(Program.center_id == center_id)
        return query.order_by(Program.name).all()

    @staticmethod
    def program(session: Session, program_id: int) -> Program | None:
        return session.query(Program).filter(Program.program_id == program_id).one_or_none()

    @staticmethod
    def stats(session: Session) -> dict[str, int]:
        return {
            "total_students":  session.query(Student).count(),
            "total_educators": session.query(Educator).count(),
            "total_employees": session.query(Employee).count(),
        }

    # ── Dropdown options ───────────────────────────────────────────────

    @staticmethod
    def reference_options(session: Session, source: str) -> list[tuple[str, str]]:
        """(value, label) pairs for a REF_* source, ordered by label."""
        if source == REF_CENTERS:
            rows = session.query(Center.center_id, Center.name).order_by(Center.name)
        elif source == REF_PROGRAMS:
            rows = session.query(Program.program_id, Program.name).order_by(Program.name)
        elif source == REF_EMPLOYEES:
            rows = session.query(Employee.employee_id, Employee.name).order_by(Employee.name)
        else:
            raise KeyError(source)
        return [(str(value), label) for value, label in rows if value is not None]

    @staticmethod
    def options_for(session: Session, spec: ColumnSpec) -> list[tuple[str, str]]:
        if spec.reference:
            return DirectoryService.reference_options(session, spec.reference)
        if spec.options:
            return [(o, o) for o in spec.options]
        return []
