"""Normalization rules and lookup tables for column matching."""

from abc import ABC, abstractmethod
from typing import Dict, List, Tuple
from dataclasses import dataclass
import regex as re

from config.models import DataType, TransformType


class NormalizationRule(ABC):
    """Base class for column-name normalization rules."""

    @abstractmethod
    def apply(self, text: str) -> str:
        """
        Rewrite a column name.

        Args:
            text: Column name, possibly already rewritten by earlier rules

        Returns:
            str: Rewritten column name
        """
        pass


class CamelCaseRule(NormalizationRule):
    """Split camelCase boundaries with a space."""

    pattern = re.compile(r'(\p{Ll})(\p{Lu})')

    def apply(self, text: str) -> str:
        return self.pattern.sub(r'\1 \2', text)


class LowercaseRule(NormalizationRule):

    def apply(self, text: str) -> str:
        return text.lower()


class SeparatorRule(NormalizationRule):
    """Collapse runs of separators into a single space."""

    pattern = re.compile(r'[_\-\s]+')

    def apply(self, text: str) -> str:
        return self.pattern.sub(' ', text)


class CanonicalTermRule(NormalizationRule):
    """Replace whole-word variants of a business term with its canonical form."""

    def __init__(self, variants: List[str], canonical: str):
        self.canonical = canonical
        self.pattern = re.compile(
            r'\b(' + '|'.join(re.escape(v) for v in variants) + r')\b'
        )

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.canonical, text)


@dataclass
class NormalizationRules:
    """Ordered rule chain applied to every column name before matching."""

    rules: List[NormalizationRule]

    def normalize(self, name: str) -> str:
        text = name
        for rule in self.rules:
            text = rule.apply(text)
        return text.strip()


DEFAULT_NORMALIZATION = NormalizationRules(rules=[
    CamelCaseRule(),
    LowercaseRule(),
    SeparatorRule(),
    CanonicalTermRule(['id', 'no', 'num', 'number', 'code'], 'identifier'),
    CanonicalTermRule(['name', 'title', 'label'], 'name'),
    CanonicalTermRule(['date', 'time', 'timestamp'], 'date'),
    CanonicalTermRule(['amount', 'value', 'price', 'cost'], 'amount'),
    CanonicalTermRule(['email', 'mail'], 'email'),
    CanonicalTermRule(['phone', 'tel', 'telephone'], 'phone'),
])

# Families used for semantic column matching
SEMANTIC_PATTERNS: Dict[str, List[str]] = {
    'identifier': ['id', 'identifier', 'key', 'code', 'num', 'ref'],
    'name': ['name', 'title', 'label', 'description'],
    'date': ['date', 'time', 'created', 'updated', 'modified'],
    'amount': ['amount', 'value', 'price', 'cost', 'total', 'sum'],
    'contact': ['email', 'phone', 'address', 'contact'],
    'status': ['status', 'state', 'flag', 'active', 'enabled'],
    'count': ['count', 'quantity', 'qty', 'number', 'total'],
    'category': ['category', 'type', 'group', 'class', 'kind'],
}

# Families reported by business-term detection
BUSINESS_TERMS: Dict[str, List[str]] = {
    'identifier': ['id', 'key', 'code', 'ref', 'number', 'num'],
    'personal': ['name', 'firstname', 'lastname', 'fullname', 'title'],
    'contact': ['email', 'phone', 'address', 'contact', 'mobile'],
    'financial': ['price', 'cost', 'amount', 'value', 'total', 'sum', 'revenue'],
    'temporal': ['date', 'time', 'created', 'updated', 'modified', 'timestamp'],
    'status': ['status', 'state', 'active', 'enabled', 'flag', 'valid'],
    'quantity': ['count', 'quantity', 'qty', 'size', 'length', 'weight'],
    'category': ['type', 'category', 'group', 'class', 'kind', 'genre'],
}

# Source type -> target types it can be mapped onto (identity is implicit).
# String never maps onto number/date: no implicit parse-back.
COMPATIBLE_TYPES: Dict[DataType, Tuple[DataType, ...]] = {
    DataType.STRING: (DataType.MIXED, DataType.UNKNOWN),
    DataType.NUMBER: (DataType.STRING, DataType.MIXED, DataType.UNKNOWN),
    DataType.DATE: (DataType.STRING, DataType.MIXED, DataType.UNKNOWN),
    DataType.BOOLEAN: (
        DataType.STRING, DataType.NUMBER, DataType.MIXED, DataType.UNKNOWN
    ),
    DataType.MIXED: (
        DataType.STRING, DataType.NUMBER, DataType.DATE, DataType.BOOLEAN,
        DataType.UNKNOWN
    ),
    DataType.UNKNOWN: (
        DataType.STRING, DataType.NUMBER, DataType.DATE, DataType.BOOLEAN,
        DataType.MIXED
    ),
}

CONVERSION_CONFIDENCE: Dict[Tuple[DataType, DataType], float] = {
    (DataType.STRING, DataType.MIXED): 0.9,
    (DataType.NUMBER, DataType.STRING): 0.95,
    (DataType.DATE, DataType.STRING): 0.9,
    (DataType.BOOLEAN, DataType.STRING): 0.95,
    (DataType.BOOLEAN, DataType.NUMBER): 0.8,
    (DataType.MIXED, DataType.STRING): 0.7,
    (DataType.UNKNOWN, DataType.STRING): 0.5,
}
DEFAULT_CONVERSION_CONFIDENCE = 0.3

TRANSFORMATION_HINTS: Dict[Tuple[DataType, DataType], str] = {
    (DataType.NUMBER, DataType.STRING): 'Convert numbers to text format',
    (DataType.DATE, DataType.STRING): 'Format dates as text (YYYY-MM-DD)',
    (DataType.BOOLEAN, DataType.STRING): 'Convert true/false to text',
    (DataType.BOOLEAN, DataType.NUMBER): 'Convert true=1, false=0',
    (DataType.STRING, DataType.NUMBER): 'Parse numeric values from text',
    (DataType.STRING, DataType.DATE): 'Parse dates from text format',
    (DataType.MIXED, DataType.STRING): 'Convert all values to text format',
}

RECOMMENDED_TRANSFORMS: Dict[Tuple[DataType, DataType], TransformType] = {
    (DataType.DATE, DataType.STRING): TransformType.DATE_FORMAT,
    (DataType.NUMBER, DataType.STRING): TransformType.NUMBER_FORMAT,
}
