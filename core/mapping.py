"""Automatic column mapping generation and mapping validation."""

from collections import Counter
from typing import Dict, List, Optional, Sequence
import logging
import uuid

from config.models import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    ColumnMapping,
    ColumnType,
    JoinType,
    MappingEntry,
    ProcessedFile,
    TransformType
)
from core.compatibility import TypeCompatibility
from core.exceptions import MappingInputError
from core.matcher import ColumnMatcher


def _mapping_id(*parts: str) -> str:
    return '-'.join(('mapping',) + parts + (uuid.uuid4().hex[:12],))


class MappingGenerator:
    """Builds column mappings from matcher suggestions and type checks."""

    @staticmethod
    def generate_auto_mapping(
        source_file: ProcessedFile,
        target_file: ProcessedFile,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    ) -> ColumnMapping:
        """
        Map every source column onto its best matching target column.

        Columns whose best suggestion is below the threshold or whose types
        are incompatible are left out; callers add those manually.

        Args:
            source_file: File whose columns are mapped
            target_file: File providing the target schema
            confidence_threshold: Minimum suggestion similarity

        Returns:
            ColumnMapping: Mapping with an inner join type

        Raises:
            MappingInputError: If either file has no parsed data
        """
        if source_file.parsed_data is None or target_file.parsed_data is None:
            missing = source_file if source_file.parsed_data is None else target_file
            raise MappingInputError('Both files must have parsed data', missing.id)

        source_data = source_file.parsed_data
        target_data = target_file.parsed_data
        matcher = ColumnMatcher(target_data.headers)
        entries = []

        for source_column in source_data.headers:
            suggestions = matcher.find_matches(source_column, limit=1)
            if not suggestions or suggestions[0].similarity < confidence_threshold:
                logging.debug(f"No confident match for column '{source_column}'")
                continue

            best = suggestions[0]
            source_type = source_data.column_type(source_column)
            target_type = target_data.column_type(best.target_column)
            if source_type is None or target_type is None:
                continue

            if not TypeCompatibility.are_compatible(source_type.type, target_type.type):
                logging.debug(
                    f"Rejected {source_column} -> {best.target_column}: "
                    f"{source_type.type.value} is not compatible with "
                    f"{target_type.type.value}"
                )
                continue

            entries.append(MappingEntry(
                source_column=source_column,
                target_column=best.target_column,
                transform=TypeCompatibility.recommended_transform(
                    source_type.type, target_type.type
                )
            ))

        logging.info(
            f"Auto-mapped {len(entries)} of {len(source_data.headers)} columns "
            f"from {source_file.id} to {target_file.id}"
        )

        return ColumnMapping(
            id=_mapping_id(source_file.id, target_file.id),
            source_file_id=source_file.id,
            target_file_id=target_file.id,
            entries=tuple(entries),
            join_type=JoinType.INNER
        )

    @staticmethod
    def generate_unified_mappings(
        files: Sequence[ProcessedFile],
        min_similarity: float = 0.5,
        limit: int = 3,
        join_type: JoinType = JoinType.INNER,
        join_key: Optional[str] = None
    ) -> List[ColumnMapping]:
        """
        Map every ready file onto the union of all files' headers.

        Args:
            files: Files to map; files without parsed data are skipped
            min_similarity: Suggestions at or below this value are ignored
            limit: Number of suggestions considered per column
            join_type: Join type recorded on every mapping
            join_key: Join key recorded on every mapping

        Returns:
            List[ColumnMapping]: One mapping per file that has entries
        """
        ready_files = [f for f in files if f.parsed_data is not None]
        unified_schema = sorted({
            header for f in ready_files for header in f.parsed_data.headers
        })

        # First declaration of a column wins when looking up its type
        target_types: Dict[str, ColumnType] = {}
        for f in ready_files:
            for column_type in f.parsed_data.column_types:
                target_types.setdefault(column_type.name, column_type)

        matcher = ColumnMatcher(unified_schema)
        mappings = []

        for f in ready_files:
            entries = []
            for source_column in f.parsed_data.headers:
                suggestions = matcher.find_matches(source_column, limit)
                if not suggestions or suggestions[0].similarity <= min_similarity:
                    continue

                best = suggestions[0]
                source_type = f.parsed_data.column_type(source_column)
                target_type = target_types.get(best.target_column)
                transform = TransformType.NONE
                if source_type is not None and target_type is not None:
                    transform = TypeCompatibility.recommended_transform(
                        source_type.type, target_type.type
                    )

                entries.append(MappingEntry(
                    source_column=source_column,
                    target_column=best.target_column,
                    transform=transform
                ))

            if entries:
                mappings.append(ColumnMapping(
                    id=_mapping_id(f.id),
                    source_file_id=f.id,
                    entries=tuple(entries),
                    join_type=join_type,
                    join_key=join_key
                ))

        return mappings

    @staticmethod
    def validate_mapping(
        mapping: ColumnMapping,
        source_file: ProcessedFile,
        target_file: Optional[ProcessedFile] = None
    ) -> List[str]:
        """
        Check a mapping against its files.

        Args:
            mapping: Mapping to validate
            source_file: File the mapping reads from
            target_file: Optional file whose headers the targets must exist in

        Returns:
            List[str]: One message per violation, empty when valid
        """
        errors: List[str] = []

        if source_file.parsed_data is None:
            errors.append('Source file has no parsed data')
            return errors

        source_columns = set(source_file.parsed_data.headers)
        for entry in mapping.entries:
            if entry.source_column not in source_columns:
                errors.append(
                    f'Source column "{entry.source_column}" does not exist in file'
                )

        if target_file is not None and target_file.parsed_data is not None:
            target_columns = set(target_file.parsed_data.headers)
            for entry in mapping.entries:
                if entry.target_column not in target_columns:
                    errors.append(
                        f'Target column "{entry.target_column}" does not exist '
                        f'in target file'
                    )

        target_counts = Counter(entry.target_column for entry in mapping.entries)
        for column, count in target_counts.items():
            if count > 1:
                errors.append(f'Target column "{column}" is mapped multiple times')

        return errors
