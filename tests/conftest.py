"""Shared fixtures for the merge engine tests."""

from typing import Any, List

import pytest

from config.models import ColumnMapping, MappingEntry, ParsedData, ProcessedFile


def build_file(file_id: str, headers: List[str], rows: List[List[Any]]) -> ProcessedFile:
    return ProcessedFile(
        id=file_id,
        name=f"{file_id}.csv",
        parsed_data=ParsedData.from_raw(headers, rows)
    )


def build_identity_mapping(file: ProcessedFile) -> ColumnMapping:
    return ColumnMapping(
        id=f"mapping-{file.id}",
        source_file_id=file.id,
        entries=tuple(
            MappingEntry(source_column=h, target_column=h)
            for h in file.parsed_data.headers
        )
    )


@pytest.fixture
def make_file():
    """Factory for ready files built from raw rows."""
    return build_file


@pytest.fixture
def identity_mapping():
    """Factory for mappings that keep every column as-is."""
    return build_identity_mapping


@pytest.fixture
def join_files():
    """Left file with key 1, right file with keys 1 and 2."""
    left = build_file('left', ['k', 'v'], [['1', 'a']])
    right = build_file('right', ['k', 'v'], [['1', 'b'], ['2', 'c']])
    return left, right
