"""Tests for value transforms and the mapping-driven transformer."""

from datetime import datetime

import pytest

from config.models import MappingEntry, TransformType
from core.exceptions import TransformError
from core.transformer import (
    BaseTransform,
    DataTransformer,
    DateFormatTransform,
    NumberFormatTransform,
    TransformRegistry
)

HEADERS = ['id', 'name', 'joined', 'score']
ROWS = [
    [1, 'Ann', datetime(2024, 1, 15), 3.14159],
    [2, None, None, '2.71828'],
    [3, 'bob', '2024-03-05T10:30:00', True],
]


def entry(source, transform=TransformType.NONE, target=None, **params):
    return MappingEntry(
        source_column=source,
        target_column=target or source,
        transform=transform,
        transform_params=params or None
    )


class TestDataTransformer:

    def test_none_transform_round_trips(self):
        headers, rows = DataTransformer().transform(ROWS, HEADERS, [entry(h) for h in HEADERS])
        assert headers == HEADERS
        assert rows == ROWS
        for new_row, old_row in zip(rows, ROWS):
            for new_value, old_value in zip(new_row, old_row):
                assert new_value is old_value

    def test_projection_and_rename(self):
        headers, rows = DataTransformer().transform(
            ROWS, HEADERS, [entry('name', target='full_name'), entry('id')]
        )
        assert headers == ['full_name', 'id']
        assert rows == [['Ann', 1], [None, 2], ['bob', 3]]

    def test_case_transforms(self):
        _, rows = DataTransformer().transform(
            ROWS, HEADERS,
            [entry('name', TransformType.UPPERCASE), entry('id', TransformType.LOWERCASE)]
        )
        assert rows == [['ANN', '1'], [None, '2'], ['BOB', '3']]

    def test_missing_source_column_yields_null(self):
        headers, rows = DataTransformer().transform(ROWS, HEADERS, [entry('ghost')])
        assert headers == ['ghost']
        assert rows == [[None], [None], [None]]

    def test_input_is_not_mutated(self):
        original = [list(row) for row in ROWS]
        DataTransformer().transform(ROWS, HEADERS, [entry('name', TransformType.UPPERCASE)])
        assert ROWS == original

    def test_transform_params(self):
        _, rows = DataTransformer().transform(
            ROWS, HEADERS,
            [entry('joined', TransformType.DATE_FORMAT, format='%d/%m/%Y')]
        )
        assert rows == [['15/01/2024'], [None], ['05/03/2024']]

    def test_unknown_transform(self):
        bad = MappingEntry(source_column='id', target_column='id', transform='reverse')
        with pytest.raises(TransformError, match='Unknown transform type: reverse'):
            DataTransformer().transform(ROWS, HEADERS, [bad])

    def test_invalid_parameters(self):
        with pytest.raises(TransformError, match='Invalid parameters for transform number_format'):
            DataTransformer().transform(
                ROWS, HEADERS, [entry('score', TransformType.NUMBER_FORMAT, precision=1)]
            )

    def test_custom_registry(self):
        class ReverseTransform(BaseTransform):
            def process(self, value):
                return str(value)[::-1]

        transform_registry = TransformRegistry()
        transform_registry.register('reverse', ReverseTransform)
        custom = MappingEntry(source_column='name', target_column='name', transform='reverse')

        _, rows = DataTransformer(transform_registry).transform(ROWS, HEADERS, [custom])
        assert rows == [['nnA'], [None], ['bob']]


class TestDateFormat:

    def test_default_format(self):
        assert DateFormatTransform().process(datetime(2024, 1, 15, 9, 0)) == '2024-01-15'

    def test_iso_string(self):
        assert DateFormatTransform().process('2024-01-15T10:30:00') == '2024-01-15'

    def test_unparseable_string_is_unchanged(self):
        assert DateFormatTransform().process('next week') == 'next week'

    def test_other_values_are_stringified(self):
        assert DateFormatTransform().process(42) == '42'


class TestNumberFormat:

    @pytest.mark.parametrize('value, decimals, expected', [
        (3.14159, 2, 3.14),
        ('2.71828', 2, 2.72),
        (3.7, 0, 4.0),
        (2.5, 0, 3.0),
        (0.125, 2, 0.13),
        (-2.5, 0, -3.0),
        ('0.5', 0, 1.0),
        (float('inf'), 2, float('inf')),
        (5, 2, 5),
        ('abc', 2, 'abc'),
        (True, 2, True),
    ])
    def test_rounding(self, value, decimals, expected):
        result = NumberFormatTransform(decimals=decimals).process(value)
        assert result == expected
        assert type(result) is type(expected)

    def test_invalid_decimals(self):
        with pytest.raises(ValueError):
            NumberFormatTransform(decimals='two')
