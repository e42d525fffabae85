"""Fuzzy search backends used by the column matcher."""

from typing import List, NamedTuple, Protocol, Sequence, Tuple
import logging

import numpy as np
import Levenshtein
import xxhash
from sklearn.feature_extraction.text import TfidfVectorizer
from scipy.sparse import csr_matrix


class SearchHit(NamedTuple):
    """One candidate returned by a search backend."""
    index: int
    candidate: str
    score: float  # Dissimilarity: 0.0 is identical


class SearchBackend(Protocol):
    """Capability interface for fuzzy candidate search."""

    def search(
        self,
        query: str,
        candidates: Sequence[str],
        limit: int
    ) -> List[SearchHit]:
        """Rank candidates by ascending dissimilarity to the query."""
        ...


def _rank(hits: List[SearchHit], limit: int) -> List[SearchHit]:
    return sorted(hits, key=lambda hit: (hit.score, hit.index))[:max(limit, 0)]


class LevenshteinSearch:
    """
    Token-aware edit-distance search.

    A candidate's similarity is the best of three views: the whole-string
    edit ratio, the best substring window of the candidate (location is
    ignored), and a word-by-word alignment. Candidates whose dissimilarity
    exceeds the threshold are rejected.
    """

    WORD_MATCH_THRESHOLD = 0.8

    def __init__(self, threshold: float = 0.6, min_match_length: int = 2):
        self.threshold = threshold
        self.min_match_length = min_match_length

    @staticmethod
    def _ratio(a: str, b: str) -> float:
        max_len = max(len(a), len(b))
        if max_len == 0:
            return 1.0
        return 1 - Levenshtein.distance(a, b) / max_len

    def _substring_similarity(self, query: str, candidate: str) -> float:
        """Best edit ratio of the query against same-length windows of the candidate."""
        if len(query) < self.min_match_length or len(query) >= len(candidate):
            return 0.0
        window = len(query)
        best = 0.0
        for start in range(len(candidate) - window + 1):
            best = max(best, self._ratio(query, candidate[start:start + window]))
            if best == 1.0:
                break
        # A window match never counts as a full match
        return best * window / (window + 1)

    def _word_similarity(self, query: str, candidate: str) -> float:
        """Share of words that align with a distinct, similar word."""
        words1, words2 = query.split(), candidate.split()
        if not words1 or not words2:
            return 0.0

        used = set()
        total = 0.0
        for w1 in words1:
            best, best_idx = 0.0, -1
            for j, w2 in enumerate(words2):
                if j not in used:
                    similarity = self._ratio(w1, w2)
                    if similarity > best:
                        best, best_idx = similarity, j
            if best >= self.WORD_MATCH_THRESHOLD:
                used.add(best_idx)
                total += best
        return total / max(len(words1), len(words2))

    def similarity(self, query: str, candidate: str) -> float:
        """Similarity in [0, 1] between a query and a candidate."""
        if query == candidate:
            return 1.0
        return max(
            self._ratio(query, candidate),
            self._substring_similarity(query, candidate),
            self._word_similarity(query, candidate)
        )

    def search(
        self,
        query: str,
        candidates: Sequence[str],
        limit: int
    ) -> List[SearchHit]:
        hits = []
        for index, candidate in enumerate(candidates):
            score = 1 - self.similarity(query, candidate)
            if score <= self.threshold:
                hits.append(SearchHit(index, candidate, score))
        return _rank(hits, limit)


class TFIDFSearch:
    """Character n-gram TF-IDF search with a fitted-vocabulary cache."""

    def __init__(
        self,
        threshold: float = 0.6,
        ngram_range: Tuple[int, int] = (2, 3)
    ):
        self.threshold = threshold
        self.ngram_range = ngram_range
        self.vectorizer = None
        self.feature_matrix = None
        self.candidates_hash = None

    def _compute_candidates_hash(self, candidates: Sequence[str]) -> str:
        """Hash the candidate list to detect changes."""
        return xxhash.xxh64('\x1f'.join(candidates).encode('utf-8')).hexdigest()

    def fit(self, candidates: Sequence[str]) -> None:
        """Fit the vectorizer on the candidate names unless already fitted."""
        new_hash = self._compute_candidates_hash(candidates)
        if self.vectorizer is not None and new_hash == self.candidates_hash:
            return

        self.vectorizer = TfidfVectorizer(
            analyzer='char_wb',
            ngram_range=self.ngram_range,
            lowercase=True,
            use_idf=True,
            smooth_idf=True,
            sublinear_tf=True
        )
        self.feature_matrix = self.vectorizer.fit_transform(list(candidates))
        self.candidates_hash = new_hash
        logging.debug(
            f"TF-IDF search fitted on {len(candidates)} candidates, "
            f"{len(self.vectorizer.vocabulary_)} n-grams"
        )

    def _cosine(self, query_vec: csr_matrix) -> np.ndarray:
        # Rows are L2-normalized by the vectorizer, so the dot product is the cosine
        return np.asarray(self.feature_matrix.dot(query_vec.T).todense()).ravel()

    def search(
        self,
        query: str,
        candidates: Sequence[str],
        limit: int
    ) -> List[SearchHit]:
        if not candidates or not query.strip():
            return []
        try:
            self.fit(candidates)
        except ValueError as e:
            # Raised when no candidate yields a single n-gram
            logging.warning(f"TF-IDF search unavailable: {e}")
            return []

        similarities = self._cosine(self.vectorizer.transform([query]))
        hits = [
            SearchHit(index, candidate, float(1 - similarities[index]))
            for index, candidate in enumerate(candidates)
            if 1 - similarities[index] <= self.threshold
        ]
        return _rank(hits, limit)
