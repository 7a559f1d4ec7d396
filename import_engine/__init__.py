"""
import_engine - CSV import pipeline.

Public API:
    ImportPipeline(store).preview(content) → ParseResult
    ImportPipeline(store).run(content, kind) → ImportReport
"""

from import_engine.csv_parser import CsvParseError, ParseResult, RawRecord   # noqa: F401
from import_engine.importer import ImportPipeline                              # noqa: F401
from import_engine.report import ImportReport                                   # noqa: F401
from import_engine.validator import RowValidationError                          # noqa: F401
