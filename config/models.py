"""Configuration and data models for the schema matching and merge engine."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from enum import Enum
from datetime import datetime

import pandas as pd

CellValue = Union[str, int, float, bool, datetime, None]

DEFAULT_CONFIDENCE_THRESHOLD = 0.7
DEFAULT_DATE_FORMAT = '%Y-%m-%d'
DEFAULT_DECIMALS = 2


class DataType(str, Enum):
    """Semantic type inferred for a column."""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    MIXED = "mixed"
    UNKNOWN = "unknown"


class MatchType(str, Enum):
    """How a column-name suggestion was found."""
    EXACT = "exact"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"
    NONE = "none"

    @property
    def priority(self) -> int:
        """Tie-break order when similarities are equal (lower wins)."""
        return _MATCH_PRIORITY[self]


_MATCH_PRIORITY = {
    MatchType.EXACT: 0,
    MatchType.FUZZY: 1,
    MatchType.SEMANTIC: 2,
    MatchType.NONE: 3,
}


class TransformType(str, Enum):
    """Value transformations applied while mapping a column."""
    NONE = "none"
    UPPERCASE = "uppercase"
    LOWERCASE = "lowercase"
    DATE_FORMAT = "date_format"
    NUMBER_FORMAT = "number_format"


class JoinType(str, Enum):
    INNER = "inner"
    LEFT = "left"
    RIGHT = "right"
    FULL = "full"


class DuplicateStrategy(str, Enum):
    KEEP_FIRST = "keep_first"
    KEEP_LAST = "keep_last"
    MERGE_VALUES = "merge_values"


class FileStatus(str, Enum):
    UPLOADING = "uploading"
    PROCESSING = "processing"
    READY = "ready"
    ERROR = "error"


@dataclass(frozen=True)
class MatcherConfig:
    """Thresholds and weights for column-name matching."""
    fuzzy_threshold: float = 0.6      # Maximum dissimilarity accepted from fuzzy search
    semantic_threshold: float = 0.6   # Minimum similarity for a semantic suggestion
    semantic_boost: float = 0.3
    word_overlap_weight: float = 0.2
    min_match_length: int = 2


@dataclass(frozen=True)
class TypeDetectionConfig:
    """Configuration for column type inference."""
    dominant_type_threshold: float = 0.8
    mixed_min_samples: int = 5
    mixed_confidence: float = 0.5
    sample_size: int = 10
    null_tokens: Tuple[str, ...] = ('null', 'none', 'nan', 'n/a')


@dataclass(frozen=True)
class ColumnType:
    """Inferred type and statistics for a single column."""
    name: str
    type: DataType
    confidence: float
    null_count: int
    unique_count: int
    samples: Tuple[CellValue, ...] = ()


@dataclass(frozen=True)
class ParsedData:
    """Headers, typed rows and column descriptors of one parsed file."""
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[CellValue, ...], ...]
    column_types: Tuple[ColumnType, ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_type(self, name: str) -> Optional[ColumnType]:
        """Return the descriptor for a column, if present."""
        for column_type in self.column_types:
            if column_type.name == name:
                return column_type
        return None

    @classmethod
    def from_raw(
        cls,
        headers: List[str],
        raw_rows: List[List[Any]],
        config: Optional[TypeDetectionConfig] = None
    ) -> 'ParsedData':
        """
        Build parsed data from raw header/row tuples.

        Every cell goes through the uniform coercion pass before column
        types are detected.

        Args:
            headers: Ordered column names
            raw_rows: Raw cell values, one list per row
            config: Optional type detection configuration

        Returns:
            ParsedData: Typed rows with aligned column descriptors
        """
        from core.type_detector import coerce_rows, detect_column_types

        width = len(headers)
        rows = coerce_rows(
            [list(row[:width]) + [None] * (width - len(row)) for row in raw_rows],
            config
        )
        return cls(
            headers=tuple(headers),
            rows=tuple(tuple(row) for row in rows),
            column_types=tuple(detect_column_types(headers, rows, config))
        )

    @classmethod
    def from_dataframe(
        cls,
        df: pd.DataFrame,
        config: Optional[TypeDetectionConfig] = None
    ) -> 'ParsedData':
        """Build parsed data from a DataFrame read by an ingestion layer."""
        headers = [str(col) for col in df.columns]
        raw_rows = df.astype(object).values.tolist()
        return cls.from_raw(headers, raw_rows, config)


@dataclass(frozen=True)
class ProcessedFile:
    """A file handed over by the ingestion layer."""
    id: str
    name: str
    parsed_data: Optional[ParsedData] = None
    status: FileStatus = FileStatus.READY
    error: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.status == FileStatus.READY and self.parsed_data is not None


@dataclass(frozen=True)
class ColumnSuggestion:
    """Candidate target column for a source column."""
    source_column: str
    target_column: str
    similarity: float
    match_type: MatchType


@dataclass(frozen=True)
class MappingEntry:
    """Mapping from one source column to one target column."""
    source_column: str
    target_column: str
    transform: TransformType = TransformType.NONE
    transform_params: Optional[Dict[str, Any]] = None


@dataclass(frozen=True)
class ColumnMapping:
    """Column mapping for one source file."""
    id: str
    source_file_id: str
    entries: Tuple[MappingEntry, ...] = ()
    target_file_id: Optional[str] = None
    join_type: Optional[JoinType] = None
    join_key: Optional[str] = None

    @property
    def target_columns(self) -> List[str]:
        return [entry.target_column for entry in self.entries]


@dataclass(frozen=True)
class MergeOptions:
    """Options controlling how mapped files are combined."""
    join_type: JoinType = JoinType.INNER
    join_key: Optional[str] = None
    handle_duplicates: DuplicateStrategy = DuplicateStrategy.KEEP_FIRST
    validate_types: bool = False
    max_rows: Optional[int] = None
    key_join_all_types: bool = False


@dataclass(frozen=True)
class MergeStats:
    """Statistics derived from one merge."""
    total_input_rows: int = 0
    merged_row_count: int = 0
    dropped_row_count: int = 0
    duplicate_row_count: int = 0
    null_value_count: int = 0


@dataclass(frozen=True)
class MergedDataset:
    """Unified dataset produced by a merge."""
    id: str
    name: str
    source_file_ids: Tuple[str, ...]
    headers: Tuple[str, ...]
    rows: Tuple[Mapping[str, CellValue], ...]  # Read-only row views
    column_types: Tuple[ColumnType, ...]
    created_at: datetime
    row_count: int

    def to_dataframe(self) -> pd.DataFrame:
        """Return the rows as an object-dtype DataFrame."""
        return pd.DataFrame(
            [dict(row) for row in self.rows],
            columns=list(self.headers),
            dtype=object
        )


@dataclass
class MergeResult:
    """Merged dataset plus statistics and accumulated messages."""
    dataset: MergedDataset
    stats: MergeStats
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class MergePreview:
    """Estimated shape of a merge before running it."""
    column_count: int
    estimated_rows: int
    source_file_count: int
    target_columns: Tuple[str, ...]
