"""String distance and set similarity primitives for column matching."""

from typing import Dict, Iterable, List, Optional
import regex as re
import numpy as np
import Levenshtein

from config.rules import BUSINESS_TERMS

_CAMEL_BOUNDARY = re.compile(r'([a-z])([A-Z])')
_SNAKE_KEBAB = re.compile(r'[_-]')
_NON_WORD = re.compile(r'[^\w\s]')
_WHITESPACE = re.compile(r'\s+')
_PREFIXES = re.compile(r'^(user|customer|client|item|product)_?', re.IGNORECASE)
_SUFFIXES = re.compile(r'_?(id|key|code|num|number)$', re.IGNORECASE)


def edit_distance(a: str, b: str) -> int:
    """Unit-cost insertion/deletion/substitution distance between two strings."""
    return Levenshtein.distance(a, b)


def similarity_ratio(a: str, b: str) -> float:
    """
    Case-insensitive edit similarity.

    Args:
        a: First string
        b: Second string

    Returns:
        float: (maxLen - distance) / maxLen, 1.0 when both strings are empty
    """
    max_len = max(len(a), len(b))
    if max_len == 0:
        return 1.0
    return (max_len - edit_distance(a.lower(), b.lower())) / max_len


def normalize_text(text: str) -> str:
    """Lowercase, drop special characters and collapse whitespace."""
    text = _NON_WORD.sub('', text.lower())
    return _WHITESPACE.sub(' ', text).strip()


def tokenize(name: str) -> List[str]:
    """Split camelCase, snake_case and kebab-case names into lowercase words."""
    text = _CAMEL_BOUNDARY.sub(r'\1 \2', name)
    text = _SNAKE_KEBAB.sub(' ', text).lower()
    return [token for token in _WHITESPACE.split(text) if token]


def jaccard(tokens_a: Iterable[str], tokens_b: Iterable[str]) -> float:
    """Intersection over union of two token sets; 0 for two empty sets."""
    set_a, set_b = set(tokens_a), set(tokens_b)
    union = set_a | set_b
    if not union:
        return 0.0
    return len(set_a & set_b) / len(union)


def cosine(text_a: str, text_b: str) -> float:
    """Cosine similarity of the token-frequency vectors of two texts."""
    words_a = tokenize(text_a)
    words_b = tokenize(text_b)

    vocabulary = list(dict.fromkeys(words_a + words_b))
    vec_a = np.array([words_a.count(word) for word in vocabulary], dtype=float)
    vec_b = np.array([words_b.count(word) for word in vocabulary], dtype=float)

    norm_a = np.linalg.norm(vec_a)
    norm_b = np.linalg.norm(vec_b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(vec_a, vec_b) / (norm_a * norm_b))


def longest_common_subsequence_length(a: str, b: str) -> int:
    """Length of the longest common subsequence of two strings."""
    previous = [0] * (len(b) + 1)
    for char_a in a:
        current = [0]
        for j, char_b in enumerate(b, start=1):
            if char_a == char_b:
                current.append(previous[j - 1] + 1)
            else:
                current.append(max(previous[j], current[j - 1]))
        previous = current
    return previous[-1]


def detect_term_families(
    text: str,
    families: Dict[str, List[str]]
) -> List[str]:
    """
    Find the term families mentioned by a piece of text.

    A family matches when any of its variants is a word of the normalized
    text or occurs inside it.

    Args:
        text: Column name or free text
        families: Family name -> variant keywords

    Returns:
        List[str]: Matching family names in table order
    """
    normalized = normalize_text(text)
    words = tokenize(normalized)
    return [
        family for family, variants in families.items()
        if any(v in words or v in normalized for v in variants)
    ]


def detect_business_terms(
    text: str,
    families: Optional[Dict[str, List[str]]] = None
) -> List[str]:
    """Business-term categories (identifier, contact, ...) found in text."""
    return detect_term_families(text, families or BUSINESS_TERMS)


def generate_alternatives(column_name: str) -> List[str]:
    """Alternative spellings of a column name, original first, no duplicates."""
    alternatives = [column_name]
    normalized = normalize_text(column_name)
    words = tokenize(column_name)

    if normalized != column_name.lower():
        alternatives.append(normalized)

    if len(words) > 1:
        alternatives.append(''.join(word[0] for word in words))

    without_prefix = _PREFIXES.sub('', column_name)
    without_suffix = _SUFFIXES.sub('', column_name)
    if without_prefix != column_name:
        alternatives.append(without_prefix)
    if without_suffix != column_name:
        alternatives.append(without_suffix)

    if len(words) > 1:
        alternatives.append(words[0] + ''.join(w.capitalize() for w in words[1:]))
        alternatives.append(''.join(w.capitalize() for w in words))

    return list(dict.fromkeys(alternatives))
