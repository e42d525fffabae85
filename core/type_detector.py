"""Cell coercion and column type inference."""

from typing import Any, List, Optional, Sequence, Union
from datetime import date, datetime
import logging
import math
import numbers

import numpy as np
import pandas as pd
import regex as re
from dateutil import parser

from config.models import CellValue, ColumnType, DataType, TypeDetectionConfig

_NUMBER_PATTERN = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$')
_INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')
_DATE_PATTERNS = (
    re.compile(r'^\d{4}-\d{2}-\d{2}'),       # ISO-like
    re.compile(r'^\d{1,2}/\d{1,2}/\d{2,4}'),  # slash-delimited
)

# Kinds in tie-break order
_KIND_ORDER = (DataType.STRING, DataType.NUMBER, DataType.DATE, DataType.BOOLEAN)

DEFAULT_DETECTION = TypeDetectionConfig()


def is_null(value: Any) -> bool:
    """True for None and pandas missing markers (NaN, NaT, NA)."""
    if value is None:
        return True
    return bool(pd.api.types.is_scalar(value) and pd.isna(value))


def parse_number(text: str) -> Optional[Union[int, float]]:
    """Parse a whole string as a finite number, or return None."""
    text = text.strip()
    if not _NUMBER_PATTERN.match(text):
        return None
    if _INTEGER_PATTERN.match(text):
        return int(text)
    number = float(text)
    return number if math.isfinite(number) else None


def parse_date(text: str) -> Optional[datetime]:
    """Parse strings that look like ISO or slash-delimited dates."""
    text = text.strip()
    if not any(pattern.match(text) for pattern in _DATE_PATTERNS):
        return None
    try:
        return parser.parse(text)
    except (ValueError, OverflowError, TypeError):
        return None


def coerce_value(
    value: Any,
    config: Optional[TypeDetectionConfig] = None
) -> CellValue:
    """
    Convert a raw cell into a typed cell value.

    Args:
        value: Raw value from the ingestion layer
        config: Optional type detection configuration

    Returns:
        CellValue: None, bool, datetime, int, float or a trimmed string
    """
    config = config or DEFAULT_DETECTION

    if is_null(value):
        return None
    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, numbers.Number):
        if isinstance(value, numbers.Integral):
            return int(value)
        number = float(value)
        return number if math.isfinite(number) else None

    text = str(value).strip()
    if not text or text.lower() in config.null_tokens:
        return None

    number = parse_number(text)
    if number is not None:
        return number

    parsed_date = parse_date(text)
    if parsed_date is not None:
        return parsed_date

    return text


def coerce_rows(
    rows: Sequence[Sequence[Any]],
    config: Optional[TypeDetectionConfig] = None
) -> List[List[CellValue]]:
    """Apply the coercion pass uniformly to every cell."""
    return [[coerce_value(cell, config) for cell in row] for row in rows]


def value_kind(value: CellValue) -> Optional[DataType]:
    """Runtime kind of a non-null cell value."""
    if isinstance(value, bool):
        return DataType.BOOLEAN
    if isinstance(value, datetime):
        return DataType.DATE
    if isinstance(value, numbers.Number):
        return DataType.NUMBER
    if isinstance(value, str):
        return DataType.STRING
    return None


def detect_column_type(
    name: str,
    values: Sequence[CellValue],
    config: Optional[TypeDetectionConfig] = None
) -> ColumnType:
    """
    Infer the dominant type of a column from its coerced values.

    Args:
        name: Column name
        values: Every value of the column, in row order
        config: Optional type detection configuration

    Returns:
        ColumnType: Type, confidence, null/unique counts and samples
    """
    config = config or DEFAULT_DETECTION
    non_null = [value for value in values if not is_null(value)]

    counts = {kind: 0 for kind in _KIND_ORDER}
    unique_values = set()
    for value in non_null:
        kind = value_kind(value)
        if kind is not None:
            counts[kind] += 1
        unique_values.add((kind, value))

    if not non_null:
        dominant_type, confidence = DataType.UNKNOWN, 0.0
    else:
        dominant_type = DataType.STRING
        max_count = counts[DataType.STRING]
        for kind in _KIND_ORDER:
            if counts[kind] > max_count:
                dominant_type, max_count = kind, counts[kind]
        confidence = max_count / len(non_null)

        if (confidence < config.dominant_type_threshold
                and len(non_null) > config.mixed_min_samples):
            dominant_type = DataType.MIXED
            confidence = config.mixed_confidence

    logging.debug(
        f"Detected column '{name}' as {dominant_type.value} "
        f"(confidence={confidence:.2f})"
    )

    return ColumnType(
        name=name,
        type=dominant_type,
        confidence=confidence,
        null_count=len(values) - len(non_null),
        unique_count=len(unique_values),
        samples=tuple(non_null[:config.sample_size])
    )


def detect_column_types(
    headers: Sequence[str],
    rows: Sequence[Sequence[CellValue]],
    config: Optional[TypeDetectionConfig] = None
) -> List[ColumnType]:
    """Detect the type of every column of a row matrix."""
    return [
        detect_column_type(
            header,
            [row[index] if index < len(row) else None for row in rows],
            config
        )
        for index, header in enumerate(headers)
    ]
