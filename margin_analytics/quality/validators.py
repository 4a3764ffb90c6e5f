"""
Data Validation Module

Rule-based quality checks over sales record frames.

Features:
- Completeness (null) audit across many columns at once
- Whole-row duplicate detection
- Range/boundary checks
- Column ordering checks between two date fields
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence

import polars as pl
import structlog

logger = structlog.get_logger(__name__)


class ValidationSeverity(str, Enum):
    """Severity levels for validation failures"""
    ERROR = "error"  # Critical - blocks pipeline
    WARNING = "warning"  # Non-critical - logged but continues
    INFO = "info"  # Informational only


class ValidationStatus(str, Enum):
    """Overall validation status"""
    PASSED = "passed"
    FAILED = "failed"
    PARTIAL = "partial"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ValidationCheck:
    """Single validation check result"""
    name: str
    passed: bool
    severity: ValidationSeverity
    message: str
    details: Optional[Dict[str, Any]] = None
    failed_rows: int = 0
    total_rows: int = 0


@dataclass
class ValidationResult:
    """Complete validation suite result"""
    status: ValidationStatus
    total_checks: int
    passed_checks: int
    failed_checks: int
    warning_count: int
    checks: List[ValidationCheck] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @property
    def success_rate(self) -> float:
        """Percentage of passed checks"""
        if self.total_checks == 0:
            return 100.0
        return (self.passed_checks / self.total_checks) * 100

    def get_check(self, name: str) -> Optional[ValidationCheck]:
        for check in self.checks:
            if check.name == name:
                return check
        return None


class DataValidator:
    """
    Chainable validator for sales frames.

    Example:
        validator = DataValidator()
        validator.add_completeness_check().add_range_check("quantity", min_value=1)
        result = validator.validate(df)
    """

    def __init__(self, strict_mode: bool = False):
        self.strict_mode = strict_mode  # Fail on any warning
        self._checks: List[Callable[[pl.DataFrame], ValidationCheck]] = []

    def reset(self) -> None:
        """Reset validator state"""
        self._checks = []

    def _missing_column(self, name: str, column: str, severity: ValidationSeverity) -> ValidationCheck:
        return ValidationCheck(
            name=name,
            passed=False,
            severity=severity,
            message=f"Column '{column}' not found",
        )

    def add_completeness_check(
        self,
        columns: Optional[Sequence[str]] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add null audit over the given columns (all columns when omitted)"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            audited = list(columns) if columns is not None else df.columns
            absent = [c for c in audited if c not in df.columns]
            if absent:
                return self._missing_column("completeness", absent[0], severity)

            counts = df.select(audited).null_count().row(0, named=True) if audited else {}
            null_counts = {col: int(n) for col, n in counts.items() if n}
            total_nulls = sum(null_counts.values())
            passed = total_nulls == 0

            return ValidationCheck(
                name="completeness",
                passed=passed,
                severity=severity,
                message=f"Found {total_nulls} null values in {len(null_counts)} columns" if not passed else "No null values",
                details={"null_counts": null_counts, "total_nulls": total_nulls, "columns_checked": len(audited)},
                failed_rows=df.select(audited).filter(pl.any_horizontal(pl.all().is_null())).height if not passed else 0,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_duplicate_rows_check(
        self,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
    ) -> "DataValidator":
        """Add check that no two rows are identical across all columns"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            # is_duplicated marks every copy; failures count the surplus copies only
            surplus = df.height - df.unique().height
            in_groups = int(df.is_duplicated().sum()) if df.height else 0
            passed = surplus == 0

            return ValidationCheck(
                name="no_duplicate_rows",
                passed=passed,
                severity=severity,
                message=f"Found {surplus} duplicate rows" if not passed else "All rows are distinct",
                details={"duplicate_rows": surplus, "rows_in_duplicate_groups": in_groups},
                failed_rows=surplus,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_range_check(
        self,
        column: str,
        min_value: Optional[float] = None,
        max_value: Optional[float] = None,
        severity: ValidationSeverity = ValidationSeverity.ERROR,
        max_exclusive: bool = False,
    ) -> "DataValidator":
        """Add bounds check; min is inclusive, max inclusive unless max_exclusive"""
        name = f"range_{column}"

        def check(df: pl.DataFrame) -> ValidationCheck:
            if column not in df.columns:
                return self._missing_column(name, column, severity)

            lower = pl.lit(True) if min_value is None else pl.col(column) >= min_value
            if max_value is None:
                upper = pl.lit(True)
            elif max_exclusive:
                upper = pl.col(column) < max_value
            else:
                upper = pl.col(column) <= max_value
            out_of_range = df.height - df.filter(lower & upper).height

            closing = ")" if max_exclusive or max_value is None else "]"
            bounds = f"[{'-inf' if min_value is None else min_value}, {'inf' if max_value is None else max_value}{closing}"
            return ValidationCheck(
                name=name,
                passed=out_of_range == 0,
                severity=severity,
                message=f"{out_of_range} values of '{column}' outside {bounds}" if out_of_range else f"'{column}' within {bounds}",
                details={"min": min_value, "max": max_value, "max_exclusive": max_exclusive, "out_of_range_count": out_of_range},
                failed_rows=out_of_range,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def add_column_order_check(
        self,
        earlier: str,
        later: str,
        severity: ValidationSeverity = ValidationSeverity.WARNING,
    ) -> "DataValidator":
        """Add check that one column never exceeds another (e.g. order before ship)"""
        def check(df: pl.DataFrame) -> ValidationCheck:
            for column in (earlier, later):
                if column not in df.columns:
                    return self._missing_column(f"order_{earlier}_{later}", column, severity)

            violations = df.filter(pl.col(earlier) > pl.col(later)).height
            passed = violations == 0

            return ValidationCheck(
                name=f"order_{earlier}_{later}",
                passed=passed,
                severity=severity,
                message=f"{violations} rows have {earlier} after {later}" if not passed else f"{earlier} never after {later}",
                details={"violations": violations},
                failed_rows=violations,
                total_rows=df.height,
            )

        self._checks.append(check)
        return self

    def validate(self, df: pl.DataFrame) -> ValidationResult:
        """
        Run all validation checks on DataFrame.

        Args:
            df: DataFrame to validate

        Returns:
            ValidationResult with all check results
        """
        started_at = _utcnow()
        logger.info("Running validation checks", checks=len(self._checks), rows=df.height)

        results = [check_func(df) for check_func in self._checks]
        failures = [r for r in results if not r.passed]
        for r in failures:
            logger.warning(
                "Validation check failed",
                check=r.name,
                message=r.message,
                severity=r.severity.value,
                failed_rows=r.failed_rows,
            )

        errors = sum(1 for r in failures if r.severity == ValidationSeverity.ERROR)
        warnings = sum(1 for r in failures if r.severity == ValidationSeverity.WARNING)
        status = self._overall_status(errors, warnings)

        logger.info(
            "Validation complete",
            status=status.value,
            passed=len(results) - len(failures),
            failed=errors,
            warnings=warnings,
        )

        return ValidationResult(
            status=status,
            total_checks=len(results),
            passed_checks=len(results) - len(failures),
            failed_checks=errors,
            warning_count=warnings,
            checks=results,
            started_at=started_at,
            completed_at=_utcnow(),
        )

    def _overall_status(self, errors: int, warnings: int) -> ValidationStatus:
        if errors or (warnings and self.strict_mode):
            return ValidationStatus.FAILED
        if warnings:
            return ValidationStatus.PARTIAL
        return ValidationStatus.PASSED


def create_cleaned_sales_validator() -> DataValidator:
    """Create pre-configured validator for cleaned sales records"""
    return (
        DataValidator()
        .add_completeness_check()
        .add_duplicate_rows_check()
        .add_range_check("quantity", min_value=1)
        .add_range_check("percent_discount", min_value=0, max_value=1, max_exclusive=True)
        .add_column_order_check("order_date", "ship_date")
    )
