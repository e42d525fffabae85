"""Tests for automatic mapping generation and mapping validation."""

import pytest

from config.models import (
    ColumnMapping,
    JoinType,
    MappingEntry,
    ProcessedFile,
    TransformType
)
from core.exceptions import MappingInputError
from core.mapping import MappingGenerator


def entry_pairs(mapping):
    return [(e.source_column, e.target_column) for e in mapping.entries]


class TestAutoMapping:

    def test_exact_matches(self, make_file):
        source = make_file('src', ['customer_id', 'Email', 'qqqq'], [['1', 'a@x.com', 'v']])
        target = make_file('tgt', ['CustomerId', 'email', 'zzz'], [['2', 'b@y.com', 'w']])

        mapping = MappingGenerator.generate_auto_mapping(source, target)

        assert entry_pairs(mapping) == [('customer_id', 'CustomerId'), ('Email', 'email')]
        assert all(e.transform == TransformType.NONE for e in mapping.entries)
        assert mapping.source_file_id == 'src'
        assert mapping.target_file_id == 'tgt'
        assert mapping.join_type == JoinType.INNER
        assert mapping.id.startswith('mapping-src-tgt-')

    def test_incompatible_types_are_omitted(self, make_file):
        source = make_file('src', ['amount'], [['abc']])
        target = make_file('tgt', ['amount'], [['5']])
        mapping = MappingGenerator.generate_auto_mapping(source, target)
        assert mapping.entries == ()

    @pytest.mark.parametrize('source_value, target_value, transform', [
        ('2024-01-01', 'soon', TransformType.DATE_FORMAT),
        ('12', 'A1', TransformType.NUMBER_FORMAT),
    ])
    def test_recommended_transform(self, make_file, source_value, target_value, transform):
        source = make_file('src', ['field'], [[source_value]])
        target = make_file('tgt', ['field'], [[target_value]])
        mapping = MappingGenerator.generate_auto_mapping(source, target)
        assert len(mapping.entries) == 1
        assert mapping.entries[0].transform == transform

    def test_confidence_threshold(self, make_file):
        source = make_file('src', ['cust_id'], [['1']])
        target = make_file('tgt', ['customer_id'], [['2']])

        strict = MappingGenerator.generate_auto_mapping(source, target, confidence_threshold=0.9)
        assert strict.entries == ()

        relaxed = MappingGenerator.generate_auto_mapping(source, target, confidence_threshold=0.7)
        assert entry_pairs(relaxed) == [('cust_id', 'customer_id')]

    def test_missing_parsed_data(self, make_file):
        source = ProcessedFile(id='empty', name='empty.csv')
        target = make_file('tgt', ['a'], [['1']])
        with pytest.raises(MappingInputError) as exc_info:
            MappingGenerator.generate_auto_mapping(source, target)
        assert exc_info.value.message == 'Both files must have parsed data'
        assert exc_info.value.context == {'file_id': 'empty'}


class TestUnifiedMappings:

    def test_maps_onto_union_of_headers(self, make_file):
        a = make_file('a', ['customer_id', 'name'], [['1', 'Ann']])
        b = make_file('b', ['customer_id', 'amount'], [['1', '9.5']])
        unparsed = ProcessedFile(id='c', name='c.csv')

        mappings = MappingGenerator.generate_unified_mappings(
            [a, b, unparsed], join_type=JoinType.LEFT, join_key='customer_id'
        )

        assert [m.source_file_id for m in mappings] == ['a', 'b']
        assert entry_pairs(mappings[0]) == [('customer_id', 'customer_id'), ('name', 'name')]
        assert entry_pairs(mappings[1]) == [('customer_id', 'customer_id'), ('amount', 'amount')]
        assert all(m.join_type == JoinType.LEFT for m in mappings)
        assert all(m.join_key == 'customer_id' for m in mappings)

    def test_no_files(self):
        assert MappingGenerator.generate_unified_mappings([]) == []


class TestValidateMapping:

    def test_valid_mapping(self, make_file, identity_mapping):
        f = make_file('f', ['id', 'name'], [['1', 'x']])
        assert MappingGenerator.validate_mapping(identity_mapping(f), f) == []

    def test_duplicate_target(self, make_file):
        f = make_file('f', ['id', 'code'], [['1', 'x']])
        mapping = ColumnMapping(
            id='m',
            source_file_id='f',
            entries=(
                MappingEntry(source_column='id', target_column='id'),
                MappingEntry(source_column='code', target_column='id'),
            )
        )
        errors = MappingGenerator.validate_mapping(mapping, f)
        assert errors == ['Target column "id" is mapped multiple times']

    def test_missing_source_column(self, make_file):
        f = make_file('f', ['id'], [['1']])
        mapping = ColumnMapping(
            id='m',
            source_file_id='f',
            entries=(MappingEntry(source_column='ghost', target_column='id'),)
        )
        errors = MappingGenerator.validate_mapping(mapping, f)
        assert errors == ['Source column "ghost" does not exist in file']

    def test_missing_target_column(self, make_file):
        source = make_file('s', ['id'], [['1']])
        target = make_file('t', ['key'], [['1']])
        mapping = ColumnMapping(
            id='m',
            source_file_id='s',
            entries=(MappingEntry(source_column='id', target_column='id'),)
        )
        errors = MappingGenerator.validate_mapping(mapping, source, target)
        assert errors == ['Target column "id" does not exist in target file']

    def test_source_without_data(self):
        mapping = ColumnMapping(id='m', source_file_id='x')
        errors = MappingGenerator.validate_mapping(mapping, ProcessedFile(id='x', name='x.csv'))
        assert errors == ['Source file has no parsed data']
