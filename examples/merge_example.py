"""Example usage of the merge engine with CSV and Excel files."""

import pandas as pd
import logging
from pathlib import Path
from typing import List, Optional

from config.models import (
    DuplicateStrategy,
    JoinType,
    MergeOptions,
    MergeResult,
    ParsedData,
    ProcessedFile
)
from core.logging_config import setup_logging
from core.mapping import MappingGenerator
from core.merger import DataMerger


def load_file(path: Path) -> ProcessedFile:
    """
    Read a CSV or Excel file into a processed file.

    Args:
        path: File to read

    Returns:
        ProcessedFile: Ready file with typed rows and column descriptors
    """
    if path.suffix.lower() in ('.xlsx', '.xls'):
        df = pd.read_excel(path, dtype=str)
    else:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)

    return ProcessedFile(
        id=path.stem,
        name=path.name,
        parsed_data=ParsedData.from_dataframe(df)
    )


def merge_tabular_files(
    paths: List[Path],
    output_file: Optional[Path] = None,
    join_key: Optional[str] = None,
    join_type: JoinType = JoinType.LEFT
) -> MergeResult:
    """
    Auto-map files onto their unified schema and merge them.

    Args:
        paths: Input CSV/Excel files
        output_file: Optional path for output Excel file
        join_key: Optional unified column to join on
        join_type: Join semantics

    Returns:
        MergeResult: Merged dataset with statistics
    """
    setup_logging('INFO')

    files = [load_file(path) for path in paths]
    for f in files:
        logging.info(f"Loaded {f.name}: {f.parsed_data.row_count} rows")
        for column_type in f.parsed_data.column_types:
            logging.info(
                f"  {column_type.name:<25} {column_type.type.value:<8} "
                f"confidence={column_type.confidence:.2f} nulls={column_type.null_count}"
            )

    mappings = MappingGenerator.generate_unified_mappings(
        files, join_type=join_type, join_key=join_key
    )
    files_by_id = {f.id: f for f in files}
    for mapping in mappings:
        f = files_by_id[mapping.source_file_id]
        for error in MappingGenerator.validate_mapping(mapping, f):
            logging.warning(f"{f.name}: {error}")

    merger = DataMerger()
    preview = merger.preview(files, mappings)
    logging.info(
        f"Preview: {preview.column_count} columns, ~{preview.estimated_rows} rows "
        f"from {preview.source_file_count} files"
    )

    result = merger.merge_files(
        files,
        mappings,
        MergeOptions(
            join_type=join_type,
            join_key=join_key,
            handle_duplicates=DuplicateStrategy.KEEP_LAST,
            validate_types=True,
            max_rows=50000
        )
    )

    for warning in result.warnings:
        logging.warning(warning)
    for error in result.errors:
        logging.error(error)

    stats = result.stats
    logging.info("\nMerge Statistics:")
    logging.info(f"Input rows: {stats.total_input_rows}")
    logging.info(f"Merged rows: {stats.merged_row_count}")
    logging.info(f"Dropped rows: {stats.dropped_row_count}")
    logging.info(f"Duplicate rows: {stats.duplicate_row_count}")
    logging.info(f"Null values: {stats.null_value_count}")

    if output_file and result.success:
        logging.info(f"\nSaving results to: {output_file}")
        with pd.ExcelWriter(
            output_file,
            engine='xlsxwriter',
            engine_kwargs={'options': {'strings_to_urls': False}}
        ) as writer:
            result.dataset.to_dataframe().to_excel(writer, index=False)

    return result


if __name__ == "__main__":
    result = merge_tabular_files(
        paths=[Path('data/customers.csv'), Path('data/orders.xlsx')],
        output_file=Path('data/merged.xlsx'),
        join_key='customer_id'
    )
