"""Column-name matching across heterogeneous schemas."""

from typing import Dict, List, Optional, Sequence
import logging

from config.models import ColumnSuggestion, MatchType, MatcherConfig
from config.rules import (
    DEFAULT_NORMALIZATION,
    SEMANTIC_PATTERNS,
    NormalizationRules
)
from core.search import LevenshteinSearch, SearchBackend
from core.text import jaccard, similarity_ratio


class ColumnMatcher:
    """
    Ranks target columns of a fixed schema against source column names.

    Suggestions come from three strategies, in order: exact match of the
    normalized names, fuzzy search, and semantic business-term patterns.
    """

    def __init__(
        self,
        target_columns: Sequence[str],
        backend: Optional[SearchBackend] = None,
        config: Optional[MatcherConfig] = None,
        normalization: NormalizationRules = DEFAULT_NORMALIZATION,
        patterns: Optional[Dict[str, List[str]]] = None
    ):
        """
        Initialize the matcher.

        Args:
            target_columns: Candidate column names (the target schema)
            backend: Fuzzy search backend, edit-distance based by default
            config: Matching thresholds and weights
            normalization: Rule chain applied to every column name
            patterns: Semantic term families, business defaults if omitted
        """
        self.config = config or MatcherConfig()
        self.normalization = normalization
        self.patterns = patterns or SEMANTIC_PATTERNS
        self.backend = backend or LevenshteinSearch(
            threshold=self.config.fuzzy_threshold,
            min_match_length=self.config.min_match_length
        )
        self.target_columns = list(target_columns)
        self.normalized_targets = [
            self.normalize_column_name(name) for name in self.target_columns
        ]

    def normalize_column_name(self, name: str) -> str:
        """Normalize a column name for comparison."""
        return self.normalization.normalize(name)

    def find_matches(self, source_column: str, limit: int = 5) -> List[ColumnSuggestion]:
        """
        Find the best target columns for a source column.

        Args:
            source_column: Source column name
            limit: Maximum number of suggestions

        Returns:
            List[ColumnSuggestion]: Suggestions, highest similarity first
        """
        normalized_source = self.normalize_column_name(source_column)
        suggestions: List[ColumnSuggestion] = []
        suggested = set()

        exact = self._find_exact_match(source_column, normalized_source)
        if exact:
            suggestions.append(exact)
            suggested.add(exact.target_column)

        for suggestion in self._find_fuzzy_matches(source_column, normalized_source, limit):
            if suggestion.target_column not in suggested:
                suggestions.append(suggestion)
                suggested.add(suggestion.target_column)

        for suggestion in self._find_semantic_matches(source_column, normalized_source):
            if suggestion.target_column not in suggested:
                suggestions.append(suggestion)
                suggested.add(suggestion.target_column)

        suggestions.sort(key=lambda s: (-s.similarity, s.match_type.priority))
        return suggestions[:limit]

    def best_match(self, source_column: str) -> ColumnSuggestion:
        """Return the top suggestion, or a 'none' suggestion when nothing matches."""
        matches = self.find_matches(source_column, limit=1)
        if matches:
            return matches[0]
        return ColumnSuggestion(
            source_column=source_column,
            target_column='',
            similarity=0.0,
            match_type=MatchType.NONE
        )

    def _find_exact_match(
        self,
        source_column: str,
        normalized_source: str
    ) -> Optional[ColumnSuggestion]:
        for target, normalized_target in zip(self.target_columns, self.normalized_targets):
            if normalized_target == normalized_source:
                return ColumnSuggestion(
                    source_column=source_column,
                    target_column=target,
                    similarity=1.0,
                    match_type=MatchType.EXACT
                )
        return None

    def _find_fuzzy_matches(
        self,
        source_column: str,
        normalized_source: str,
        limit: int
    ) -> List[ColumnSuggestion]:
        hits = self.backend.search(normalized_source, self.normalized_targets, limit)
        return [
            ColumnSuggestion(
                source_column=source_column,
                target_column=self.target_columns[hit.index],
                similarity=1 - hit.score,
                match_type=MatchType.FUZZY
            )
            for hit in hits
            if hit.score <= self.config.fuzzy_threshold
        ]

    def _find_semantic_matches(
        self,
        source_column: str,
        normalized_source: str
    ) -> List[ColumnSuggestion]:
        """Match columns that belong to the same business-term family."""
        suggestions = []
        seen = set()

        for family, variants in self.patterns.items():
            if not any(variant in normalized_source for variant in variants):
                continue

            for target, normalized_target in zip(self.target_columns, self.normalized_targets):
                if target in seen:
                    continue
                if not any(variant in normalized_target for variant in variants):
                    continue

                similarity = self._semantic_similarity(normalized_source, normalized_target)
                if similarity > self.config.semantic_threshold:
                    logging.debug(
                        f"Semantic match ({family}): {source_column} -> {target} "
                        f"({similarity:.3f})"
                    )
                    suggestions.append(ColumnSuggestion(
                        source_column=source_column,
                        target_column=target,
                        similarity=similarity,
                        match_type=MatchType.SEMANTIC
                    ))
                    seen.add(target)

        return suggestions

    def _semantic_similarity(self, source: str, target: str) -> float:
        """Edit similarity boosted for a shared family and overlapping words."""
        word_overlap = jaccard(source.split(), target.split())
        return min(
            similarity_ratio(source, target)
            + self.config.semantic_boost
            + self.config.word_overlap_weight * word_overlap,
            1.0
        )
