"""
import_engine.report - Structured result of a CSV import run.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from import_engine.validator import RowValidationError

# Outcome stages, in pipeline order
STAGE_PARSE    = "parse"
STAGE_FETCH    = "fetch_existing"
STAGE_VALIDATE = "validate"
STAGE_PERSIST  = "persist"
STAGE_DONE     = "done"


@dataclass
class ImportReport:
    kind: str
    success: bool = False
    stage: str = STAGE_PARSE
    total_rows: int = 0
    imported: int = 0
    message: str = ""
    errors: list[RowValidationError] = field(default_factory=list)

    def fail(self, stage: str, message: str) -> "ImportReport":
        self.success = False
        self.stage = stage
        self.message = message
        return self

    def succeed(self, imported: int, message: str) -> "ImportReport":
        self.success = True
        self.stage = STAGE_DONE
        self.imported = imported
        self.message = message
        return self

    def error_text(self, limit: int = 5) -> str:
        """
        User-facing text: the failure message, or the first *limit*
        validation messages followed by an overflow count.
        """
        if not self.errors:
            return self.message
        shown = "\n".join(e.message for e in self.errors[:limit])
        text = f"Validation errors found:\n{shown}"
        hidden = len(self.errors) - limit
        if hidden > 0:
            text += f"\n...and {hidden} more errors"
        return text

    def to_dict(self, limit: int = 5) -> dict:
        return {
            "kind": self.kind,
            "success": self.success,
            "stage": self.stage,
            "total_rows": self.total_rows,
            "imported": self.imported,
            "message": self.message if self.success else self.error_text(limit),
            "errors": [e.to_dict() for e in self.errors],
        }
