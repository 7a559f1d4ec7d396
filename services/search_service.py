"""
services.search_service - Scoped, searchable listing of a data table.

Builds SQLAlchemy queries with optional center/program scope, a
free-text ILIKE match across every column, and per-column filters.
"""

from __future__ import annotations

from sqlalchemy import String, cast, or_
from sqlalchemy.orm import Query, Session

from db.models import model_for


class SearchService:

    # Columns never matched by the free-text search
    UNSEARCHABLE = frozenset({"id", "extra_json"})

    @staticmethod
    def search(
        session: Session,
        kind: str,
        *,
        q: str = "",
        center_id: int | None = None,
        program_id: int | None = None,
        filters: dict[str, str] | None = None,
        sort_by: str = "id",
        sort_order: str = "asc",
        limit: int = 100,
        offset: int = 0,
    ) -> tuple[list, int]:
        """
        Search rows of *kind*.  Returns (rows, total_count).
        """
        model = model_for(kind)
        query = session.query(model)
        query = SearchService._apply_scope(query, model, center_id, program_id)
        if q:
            query = SearchService._apply_text_filter(query, model, q)
        if filters:
            query = SearchService._apply_column_filters(query, model, filters)
        total = query.count()

        columns = model.__table__.columns
        sort_col = columns[sort_by] if sort_by in columns else columns["id"]
        if sort_order == "desc":
            query = query.order_by(sort_col.desc())
        else:
            query = query.order_by(sort_col.asc())
        rows = query.offset(offset).limit(limit).all()
        return rows, total

    # ── Internal ───────────────────────────────────────────────────────

    @staticmethod
    def _apply_scope(query: Query, model, center_id, program_id) -> Query:
        columns = model.__table__.columns
        if center_id is not None and "center_id" in columns:
            query = query.filter(columns["center_id"] == center_id)
        if program_id is not None and "program_id" in columns:
            program_cols = [columns["program_id"]]
            if "program_2_id" in columns:
                program_cols.append(columns["program_2_id"])
            query = query.filter(or_(*(c == program_id for c in program_cols)))
        return query

    @staticmethod
    def _apply_text_filter(query: Query, model, q: str) -> Query:
        like = f"%{q}%"
        return query.filter(or_(*(
            cast(col, String).ilike(like)
            for col in model.__table__.columns
            if col.key not in SearchService.UNSEARCHABLE
        )))

    @staticmethod
    def _apply_column_filters(query: Query, model, filters: dict[str, str]) -> Query:
        """Case-insensitive substring filter per column; unknown columns are ignored."""
        columns = model.__table__.columns
        for name, value in filters.items():
            if not value or name not in columns or name in SearchService.UNSEARCHABLE:
                continue
            query = query.filter(cast(columns[name], String).ilike(f"%{value}%"))
        return query
