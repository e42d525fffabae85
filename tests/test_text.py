"""Tests for the string and set similarity primitives."""

import pytest

from core.text import (
    cosine,
    detect_business_terms,
    edit_distance,
    generate_alternatives,
    jaccard,
    longest_common_subsequence_length,
    normalize_text,
    similarity_ratio,
    tokenize
)


class TestEditDistance:

    @pytest.mark.parametrize('text', ['', 'a', 'customer_id', 'Ünïcode name'])
    def test_identity(self, text):
        assert edit_distance(text, text) == 0
        assert similarity_ratio(text, text) == 1.0

    def test_classic_example(self):
        assert edit_distance('kitten', 'sitting') == 3

    def test_similarity_ignores_case(self):
        assert similarity_ratio('ABC', 'abc') == 1.0

    def test_similarity_ratio(self):
        assert similarity_ratio('abc', 'abd') == pytest.approx(2 / 3)
        assert similarity_ratio('', 'abc') == 0.0


class TestTokenize:

    def test_camel_case(self):
        assert tokenize('customerFirstName') == ['customer', 'first', 'name']

    def test_separators_and_whitespace(self):
        assert tokenize('order_id-code   x') == ['order', 'id', 'code', 'x']

    def test_empty(self):
        assert tokenize('') == []

    def test_normalize_text(self):
        assert normalize_text('  Hello,  World! ') == 'hello world'


class TestSetSimilarity:

    def test_jaccard_disjoint(self):
        assert jaccard(['a', 'b'], ['c', 'd']) == 0

    def test_jaccard_equal(self):
        assert jaccard(['a', 'b'], ['b', 'a']) == 1.0

    def test_jaccard_partial(self):
        assert jaccard(['a', 'b'], ['b', 'c']) == pytest.approx(1 / 3)

    def test_jaccard_empty(self):
        assert jaccard([], []) == 0

    def test_cosine(self):
        assert cosine('customer_id', 'customerId') == pytest.approx(1.0)
        assert cosine('a_b', 'a_c') == pytest.approx(0.5)
        assert cosine('alpha', 'beta') == 0.0
        assert cosine('', 'beta') == 0.0

    def test_longest_common_subsequence(self):
        assert longest_common_subsequence_length('ABCBDAB', 'BDCABA') == 4
        assert longest_common_subsequence_length('', 'abc') == 0


class TestBusinessTerms:

    def test_contact(self):
        assert detect_business_terms('customer_email') == ['contact']

    def test_financial(self):
        assert detect_business_terms('order_total_price') == ['financial']

    def test_alternatives(self):
        assert generate_alternatives('customer_id') == [
            'customer_id', 'ci', 'id', 'customer', 'customerId', 'CustomerId'
        ]

    def test_alternatives_single_word(self):
        assert generate_alternatives('status') == ['status']
