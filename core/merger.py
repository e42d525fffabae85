"""Multi-file merge: schema unification, joins, deduplication and statistics."""

from collections import Counter, defaultdict
from datetime import datetime
from types import MappingProxyType
from typing import Dict, List, NamedTuple, Optional, Sequence, Set, Tuple
import json
import logging
import time
import uuid

import xxhash

from config.models import (
    CellValue,
    ColumnMapping,
    DataType,
    DuplicateStrategy,
    JoinType,
    MergedDataset,
    MergeOptions,
    MergePreview,
    MergeResult,
    MergeStats,
    ProcessedFile,
    TypeDetectionConfig
)
from core.compatibility import TypeCompatibility
from core.exceptions import MergeError, SchemaMergeError
from core.transformer import DataTransformer
from core.type_detector import detect_column_types, is_null

Row = List[CellValue]


class TransformedFile(NamedTuple):
    """A file's rows after its mapping has been applied."""
    file_id: str
    headers: List[str]
    rows: List[Row]


class DataMerger:
    """
    Merges mapped files into one dataset.

    merge_files never raises: input problems and unexpected failures are
    reported through MergeResult.errors, partial failures through warnings.
    """

    def __init__(
        self,
        transformer: Optional[DataTransformer] = None,
        detection_config: Optional[TypeDetectionConfig] = None
    ):
        """
        Initialize the merger.

        Args:
            transformer: Transformer applying mappings, default registry if omitted
            detection_config: Type detection settings for merged column types
        """
        self.transformer = transformer or DataTransformer()
        self.detection_config = detection_config
        self._initialize_logging()

    def _initialize_logging(self) -> None:
        """Setup logging configuration."""
        self.logger = logging.getLogger(__name__)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(
                logging.Formatter(
                    '%(asctime)s - %(levelname)s - %(message)s'
                )
            )
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def merge_files(
        self,
        files: Sequence[ProcessedFile],
        mappings: Sequence[ColumnMapping],
        options: Optional[MergeOptions] = None
    ) -> MergeResult:
        """
        Merge files according to their column mappings.

        Args:
            files: Candidate source files
            mappings: One mapping per file to include
            options: Join, duplicate and row-limit options

        Returns:
            MergeResult: Dataset, statistics, warnings and errors
        """
        start_time = time.time()
        options = options or MergeOptions()
        warnings: List[str] = []
        errors: List[str] = []

        try:
            if not files:
                raise MergeError('No files provided for merging')
            if not mappings:
                raise MergeError('No column mappings provided')

            transformed = self._transform_files(files, mappings, warnings)
            if not transformed:
                raise MergeError('No valid files to merge after transformation')

            unified_headers = self.create_unified_schema(
                [tf.headers for tf in transformed]
            )

            if options.validate_types:
                warnings.extend(self._check_type_consistency(transformed))

            rows, stats = self._perform_merge(
                transformed, unified_headers, options, warnings
            )
            dataset = self._build_dataset(files, unified_headers, rows)

            self.logger.info(
                f"Merged {len(transformed)} files into {stats.merged_row_count} rows "
                f"in {time.time() - start_time:.2f} seconds"
            )
            return MergeResult(dataset=dataset, stats=stats, warnings=warnings, errors=errors)

        except MergeError as e:
            self.logger.warning(f"Merge rejected: {e.message}")
            errors.append(e.message)
        except SchemaMergeError as e:
            self.logger.error(f"Merge failed: {e}")
            errors.append(str(e))
        except Exception as e:
            self.logger.error(f"Unexpected merge error: {e}", exc_info=True)
            errors.append(str(e) or 'Unknown merge error')

        return MergeResult(
            dataset=self._empty_dataset(files),
            stats=MergeStats(),
            warnings=warnings,
            errors=errors
        )

    def preview(
        self,
        files: Sequence[ProcessedFile],
        mappings: Sequence[ColumnMapping]
    ) -> MergePreview:
        """Estimate the shape of a merge without running it."""
        target_columns = {
            entry.target_column for mapping in mappings for entry in mapping.entries
        }
        estimated_rows = sum(f.parsed_data.row_count for f in files if f.is_ready)
        return MergePreview(
            column_count=len(target_columns),
            estimated_rows=estimated_rows,
            source_file_count=len(mappings),
            target_columns=tuple(sorted(target_columns))
        )

    def _transform_files(
        self,
        files: Sequence[ProcessedFile],
        mappings: Sequence[ColumnMapping],
        warnings: List[str]
    ) -> List[TransformedFile]:
        """Apply each mapping to its source file, skipping unavailable files."""
        transformed = []
        for mapping in mappings:
            source = next((f for f in files if f.id == mapping.source_file_id), None)
            if source is None or not source.is_ready:
                message = f"File {mapping.source_file_id} not found or has no data"
                self.logger.warning(message)
                warnings.append(message)
                continue

            headers, rows = self.transformer.transform(
                source.parsed_data.rows,
                source.parsed_data.headers,
                mapping.entries
            )
            transformed.append(TransformedFile(source.id, headers, rows))
        return transformed

    @staticmethod
    def create_unified_schema(schemas: Sequence[Sequence[str]]) -> List[str]:
        """Union of all headers, most frequent first, then alphabetical."""
        column_counts = Counter(column for schema in schemas for column in schema)
        return sorted(column_counts, key=lambda column: (-column_counts[column], column))

    @staticmethod
    def align_to_schema(
        rows: Sequence[Row],
        headers: Sequence[str],
        unified_headers: Sequence[str]
    ) -> List[Row]:
        """Reorder rows onto the unified schema, padding absent columns with None."""
        header_index = {header: index for index, header in enumerate(headers)}
        positions = [header_index.get(header) for header in unified_headers]
        return [
            [row[position] if position is not None else None for position in positions]
            for row in rows
        ]

    def _perform_merge(
        self,
        transformed: List[TransformedFile],
        unified_headers: List[str],
        options: MergeOptions,
        warnings: List[str]
    ) -> Tuple[List[Row], MergeStats]:
        aligned = [
            self.align_to_schema(tf.rows, tf.headers, unified_headers)
            for tf in transformed
        ]
        total_rows = sum(len(tf.rows) for tf in transformed)
        dropped_rows = 0

        key_join_types = (JoinType.INNER, JoinType.LEFT)
        if options.key_join_all_types:
            key_join_types = tuple(JoinType)

        if options.join_type in key_join_types:
            merged = list(aligned[0])
            joined_columns: Set[str] = set(transformed[0].headers)

            for tf, rows in zip(transformed[1:], aligned[1:]):
                if options.join_key and self._can_key_join(
                    options.join_key, unified_headers, joined_columns, tf, warnings
                ):
                    merged, dropped = self.perform_key_based_join(
                        merged, rows, unified_headers,
                        options.join_key, options.join_type
                    )
                    dropped_rows += dropped
                else:
                    merged = merged + rows
                joined_columns.update(tf.headers)
        else:
            # Right and full joins are a plain union unless key joins apply to all types
            merged = [row for rows in aligned for row in rows]

        duplicate_rows = 0
        if options.handle_duplicates != DuplicateStrategy.KEEP_FIRST:
            merged, duplicate_rows = self.handle_duplicates(merged, options.handle_duplicates)

        null_values = sum(1 for row in merged for cell in row if is_null(cell))

        # A cap of 0 means no cap
        if options.max_rows and len(merged) > options.max_rows:
            dropped_rows += len(merged) - options.max_rows
            merged = merged[:options.max_rows]

        stats = MergeStats(
            total_input_rows=total_rows,
            merged_row_count=len(merged),
            dropped_row_count=dropped_rows,
            duplicate_row_count=duplicate_rows,
            null_value_count=null_values
        )
        return merged, stats

    def _can_key_join(
        self,
        join_key: str,
        unified_headers: Sequence[str],
        joined_columns: Set[str],
        current: TransformedFile,
        warnings: List[str]
    ) -> bool:
        """Check that both sides carry the join key; warn and fall back otherwise."""
        if join_key not in unified_headers:
            message = (
                f"Join key '{join_key}' not found in merged schema; "
                f"appending rows of {current.file_id} instead"
            )
        elif join_key not in joined_columns or join_key not in current.headers:
            message = (
                f"Join key '{join_key}' missing on one side of the join with "
                f"{current.file_id}; appending rows instead"
            )
        else:
            return True

        self.logger.warning(message)
        warnings.append(message)
        return False

    @staticmethod
    def _key_string(value: CellValue) -> str:
        """Stringify a join key value; missing values become the empty key."""
        if is_null(value):
            return ''
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, float) and value.is_integer():
            return str(int(value))
        if isinstance(value, datetime):
            return value.isoformat()
        return str(value)

    @classmethod
    def perform_key_based_join(
        cls,
        left_rows: Sequence[Row],
        right_rows: Sequence[Row],
        headers: Sequence[str],
        join_key: str,
        join_type: JoinType
    ) -> Tuple[List[Row], int]:
        """
        Join two aligned row sets on a key column.

        Each side is indexed by the stringified key; a later row with the
        same key replaces an earlier one. Inner joins count unmatched keys
        of both sides as dropped.

        Args:
            left_rows: Rows accumulated so far
            right_rows: Rows of the next file
            headers: Unified schema both sides are aligned to
            join_key: Key column name
            join_type: Join semantics

        Returns:
            Tuple[List[Row], int]: Joined rows and number of dropped rows
        """
        if join_key not in headers:
            return list(left_rows) + list(right_rows), 0

        key_index = list(headers).index(join_key)
        left_map: Dict[str, Row] = {}
        right_map: Dict[str, Row] = {}
        for row in left_rows:
            left_map[cls._key_string(row[key_index])] = row
        for row in right_rows:
            right_map[cls._key_string(row[key_index])] = row

        width = len(headers)
        result: List[Row] = []
        dropped = 0

        if join_type == JoinType.INNER:
            for key, left_row in left_map.items():
                if key in right_map:
                    result.append(cls.merge_rows(left_row, right_map[key], width))
                else:
                    dropped += 1
            dropped += sum(1 for key in right_map if key not in left_map)

        elif join_type == JoinType.LEFT:
            for key, left_row in left_map.items():
                result.append(cls.merge_rows(left_row, right_map.get(key), width))

        elif join_type == JoinType.RIGHT:
            for key, right_row in right_map.items():
                result.append(cls.merge_rows(left_map.get(key), right_row, width))

        elif join_type == JoinType.FULL:
            for key, left_row in left_map.items():
                result.append(cls.merge_rows(left_row, right_map.get(key), width))
            for key, right_row in right_map.items():
                if key not in left_map:
                    result.append(cls.merge_rows(None, right_row, width))

        return result, dropped

    @staticmethod
    def merge_rows(left: Optional[Row], right: Optional[Row], width: int) -> Row:
        """Overlay two rows; left values win, right values fill the gaps."""
        result: Row = [None] * width
        if left is not None:
            for index, value in enumerate(left[:width]):
                result[index] = value
        if right is not None:
            for index, value in enumerate(right[:width]):
                if is_null(result[index]):
                    result[index] = value
        return result

    @staticmethod
    def _row_fingerprint(row: Row) -> str:
        # Cells are tagged with their type so 1, True, '1' and dates stay distinct
        serialized = json.dumps(
            [
                None if is_null(cell) else [type(cell).__name__, cell]
                for cell in row
            ],
            default=str
        )
        return xxhash.xxh64(serialized.encode('utf-8')).hexdigest()

    @classmethod
    def handle_duplicates(
        cls,
        rows: Sequence[Row],
        strategy: DuplicateStrategy
    ) -> Tuple[List[Row], int]:
        """
        Remove rows whose full content repeats an earlier row.

        keep_last moves the later occurrence into the first occurrence's
        position; merge_values behaves the same way.

        Returns:
            Tuple[List[Row], int]: Deduplicated rows and number removed
        """
        if strategy == DuplicateStrategy.KEEP_FIRST:
            return list(rows), 0

        seen: Dict[str, int] = {}
        result: List[Row] = []
        removed = 0

        for row in rows:
            fingerprint = cls._row_fingerprint(row)
            if fingerprint in seen:
                removed += 1
                result[seen[fingerprint]] = row
            else:
                seen[fingerprint] = len(result)
                result.append(row)

        return result, removed

    def _check_type_consistency(self, transformed: List[TransformedFile]) -> List[str]:
        """Warn about unified columns whose types differ incompatibly across files."""
        column_types: Dict[str, List[Tuple[str, DataType]]] = defaultdict(list)
        for tf in transformed:
            for column_type in detect_column_types(tf.headers, tf.rows, self.detection_config):
                column_types[column_type.name].append((tf.file_id, column_type.type))

        warnings = []
        for column, typed in column_types.items():
            conflict = any(
                not TypeCompatibility.are_compatible(a, b)
                and not TypeCompatibility.are_compatible(b, a)
                for i, (_, a) in enumerate(typed)
                for _, b in typed[i + 1:]
            )
            if conflict:
                detail = ', '.join(f"{file_id}: {t.value}" for file_id, t in typed)
                warnings.append(
                    f"Column '{column}' has incompatible types across files ({detail})"
                )
        return warnings

    def _build_dataset(
        self,
        files: Sequence[ProcessedFile],
        headers: List[str],
        rows: List[Row]
    ) -> MergedDataset:
        return MergedDataset(
            id=f"merged-{uuid.uuid4().hex}",
            name=f"Merged Dataset ({len(files)} files)",
            source_file_ids=self._source_ids(files),
            headers=tuple(headers),
            rows=tuple(MappingProxyType(dict(zip(headers, row))) for row in rows),
            column_types=tuple(detect_column_types(headers, rows, self.detection_config)),
            created_at=datetime.now(),
            row_count=len(rows)
        )

    def _empty_dataset(self, files: Optional[Sequence[ProcessedFile]]) -> MergedDataset:
        return MergedDataset(
            id=f"error-{uuid.uuid4().hex}",
            name='Failed Merge',
            source_file_ids=self._source_ids(files),
            headers=(),
            rows=(),
            column_types=(),
            created_at=datetime.now(),
            row_count=0
        )

    @staticmethod
    def _source_ids(files: Optional[Sequence[ProcessedFile]]) -> Tuple[str, ...]:
        return tuple(dict.fromkeys(f.id for f in files or ()))
