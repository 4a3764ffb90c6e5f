"""
Sales Record Schema

Explicit ordered schema of (field label, semantic type) pairs, validated
against the CSV header at load time.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Sequence, Tuple

import polars as pl


class SemanticType(str, Enum):
    """Semantic column types"""
    IDENTIFIER = "identifier"
    TEXT = "text"
    CATEGORY = "category"
    DATE = "date"
    INTEGER = "integer"
    DECIMAL = "decimal"


# Categorical fields stay as plain strings so grouping and sorting are lexical
POLARS_TYPES: Dict[SemanticType, pl.DataType] = {
    SemanticType.IDENTIFIER: pl.Utf8,
    SemanticType.TEXT: pl.Utf8,
    SemanticType.CATEGORY: pl.Utf8,
    SemanticType.DATE: pl.Date,
    SemanticType.INTEGER: pl.Int64,
    SemanticType.DECIMAL: pl.Float64,
}


@dataclass(frozen=True)
class SchemaField:
    """Single declared column"""
    label: str
    semantic_type: SemanticType

    @property
    def dtype(self) -> pl.DataType:
        return POLARS_TYPES[self.semantic_type]


class RecordSchema:
    """
    Ordered column declaration for a raw sales file.

    Example:
        schema = RecordSchema([("Order ID", SemanticType.IDENTIFIER), ...])
        schema.mismatches(["Order ID", ...])
    """

    def __init__(self, fields: Sequence[Tuple[str, SemanticType]]):
        self.fields: List[SchemaField] = [
            SchemaField(label, SemanticType(semantic_type)) for label, semantic_type in fields
        ]

    def __len__(self) -> int:
        return len(self.fields)

    def __iter__(self):
        return iter(self.fields)

    @property
    def labels(self) -> List[str]:
        return [f.label for f in self.fields]

    def of_type(self, semantic_type: SemanticType) -> List[str]:
        """Labels of all fields with the given semantic type"""
        return [f.label for f in self.fields if f.semantic_type == semantic_type]

    def mismatches(self, header: Sequence[str]) -> List[str]:
        """Describe every way a header disagrees with this schema"""
        errors = []
        header = [h.lstrip("\ufeff").strip() for h in header]

        if len(header) != len(self.fields):
            errors.append(f"Expected {len(self.fields)} columns, found {len(header)}")

        for position, (expected, actual) in enumerate(zip(self.labels, header)):
            if expected != actual:
                errors.append(f"Column {position}: expected '{expected}', found '{actual}'")

        return errors


SUPERSTORE_SCHEMA = RecordSchema([
    ("Row ID", SemanticType.INTEGER),
    ("Order ID", SemanticType.IDENTIFIER),
    ("Order Date", SemanticType.DATE),
    ("Ship Date", SemanticType.DATE),
    ("Ship Mode", SemanticType.CATEGORY),
    ("Customer ID", SemanticType.IDENTIFIER),
    ("Customer Name", SemanticType.TEXT),
    ("Segment", SemanticType.CATEGORY),
    ("Country", SemanticType.CATEGORY),
    ("City", SemanticType.CATEGORY),
    ("State", SemanticType.CATEGORY),
    ("Postal Code", SemanticType.IDENTIFIER),
    ("Region", SemanticType.CATEGORY),
    ("Product ID", SemanticType.IDENTIFIER),
    ("Category", SemanticType.CATEGORY),
    ("Sub-Category", SemanticType.CATEGORY),
    ("Product Name", SemanticType.TEXT),
    ("Sales", SemanticType.DECIMAL),
    ("Quantity", SemanticType.INTEGER),
    ("Discount", SemanticType.DECIMAL),
    ("Profit", SemanticType.DECIMAL),
])
