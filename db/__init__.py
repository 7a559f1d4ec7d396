"""
db - Database layer.

Public API:
    init_db()       → create engine + tables
    get_session()   → new Session
    model_for(kind) → ORM model for a dashboard table
"""

from db.engine import init_db, get_session                  # noqa: F401
from db.models import (                                      # noqa: F401
    Base, Center, Program, Student, Educator, Employee, Course,
    MODELS, model_for,
)
