"""
Pipeline Errors

Structural errors abort the run; EnrichmentUndefined is record-level and is
normally isolated and counted rather than raised.
"""

from typing import Any, Dict, List, Optional


class PipelineError(Exception):
    """Base class for all sales pipeline errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SchemaMismatch(PipelineError):
    """Column shape or column typing disagrees with the declared schema"""

    def __init__(
        self,
        message: str,
        expected: Optional[List[str]] = None,
        actual: Optional[List[str]] = None,
        column: Optional[str] = None,
        examples: Optional[List[Any]] = None,
    ):
        super().__init__(
            message,
            details={
                "expected": expected,
                "actual": actual,
                "column": column,
                "examples": examples,
            },
        )
        self.expected = expected or []
        self.actual = actual or []
        self.column = column
        self.examples = examples or []


class DateParseError(PipelineError):
    """A date field does not match the expected day-month-year format"""

    def __init__(self, column: str, date_format: str, failed_count: int, examples: List[str]):
        super().__init__(
            f"Column '{column}' has {failed_count} values not matching '{date_format}': {examples}",
            details={
                "column": column,
                "date_format": date_format,
                "failed_count": failed_count,
                "examples": examples,
            },
        )
        self.column = column
        self.date_format = date_format
        self.failed_count = failed_count
        self.examples = examples


class MissingValueDetected(PipelineError):
    """Post-clean audit found nulls in retained fields"""

    def __init__(self, null_counts: Dict[str, int]):
        total = sum(null_counts.values())
        super().__init__(
            f"Missing-value audit found {total} nulls: {null_counts}",
            details={"null_counts": null_counts, "total_nulls": total},
        )
        self.null_counts = null_counts
        self.total_nulls = total


class EnrichmentUndefined(PipelineError):
    """Derived fields are undefined (zero quantity or full discount)"""

    def __init__(self, undefined_count: int, reasons: Optional[Dict[str, int]] = None):
        super().__init__(
            f"{undefined_count} records have undefined derived fields",
            details={"undefined_count": undefined_count, "reasons": reasons or {}},
        )
        self.undefined_count = undefined_count
        self.reasons = reasons or {}
