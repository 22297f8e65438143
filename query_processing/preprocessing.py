"""
Query preprocessing.

Clean queries retrieve better. This module handles:
- Normalization (case, punctuation, whitespace)
- Key term extraction
- Synonym / abbreviation expansion
- Query variations for better recall

All transformations are pure string functions.
"""

import re
from typing import Dict, FrozenSet, List, Optional

STOP_WORDS: FrozenSet[str] = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
        "has", "he", "in", "is", "it", "its", "of", "on", "that", "the",
        "to", "was", "were", "will", "with", "this", "but", "they",
        "have", "had", "what", "said", "each", "which", "she", "do",
        "how", "their", "if", "up", "out", "many", "then", "them",
    }
)

SYNONYMS: Dict[str, List[str]] = {
    "ml": ["machine learning", "artificial intelligence"],
    "ai": ["artificial intelligence", "machine learning"],
    "db": ["database", "data storage"],
    "api": ["application programming interface", "web service"],
}

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")
_DIGITS = re.compile(r"^\d+$")

# Queries longer than this get a short key-term variant
LONG_QUERY_WORDS = 5


class QueryPreprocessor:
    """
    Normalize, tokenize and expand raw query strings.

    Usage:
        preprocessor = QueryPreprocessor(min_term_length=3)
        terms = preprocessor.extract_key_terms("How do I tune the DB cache?")
    """

    def __init__(
        self,
        min_term_length: int = 2,
        stop_words: Optional[FrozenSet[str]] = None,
        synonyms: Optional[Dict[str, List[str]]] = None,
    ):
        """
        Args:
            min_term_length: Shortest token kept as a key term
            stop_words: Tokens never treated as key terms
            synonyms: {term: expansions} table used by expand()
        """
        self.min_term_length = min_term_length
        self.stop_words = STOP_WORDS if stop_words is None else frozenset(stop_words)
        self.synonyms = SYNONYMS if synonyms is None else synonyms
        self._synonym_patterns = {
            term: re.compile(rf"\b{re.escape(term)}\b", re.IGNORECASE)
            for term in self.synonyms
        }

    def normalize(self, query: str) -> str:
        """Lowercase, replace punctuation with spaces, collapse whitespace."""
        text = _PUNCTUATION.sub(" ", query.lower())
        return _WHITESPACE.sub(" ", text).strip()

    def extract_key_terms(self, query: str) -> List[str]:
        """
        Extract content terms from a query.

        Drops short tokens, stop words and pure numbers. Order is kept,
        duplicates are not removed.
        """
        normalized = self.normalize(query)
        if not normalized:
            return []

        return [
            term
            for term in normalized.split(" ")
            if len(term) >= self.min_term_length
            and term not in self.stop_words
            and not _DIGITS.match(term)
        ]

    def expand(self, query: str) -> str:
        """
        Append synonym expansions for whole-word matches.

        Example:
            >>> QueryPreprocessor().expand("ml basics")
            'ml basics machine learning artificial intelligence'
        """
        expanded = query
        for term, pattern in self._synonym_patterns.items():
            if pattern.search(expanded):
                expanded += " " + " ".join(self.synonyms[term])
        return expanded

    def generate_variations(self, query: str) -> List[str]:
        """
        Build alternate phrasings for better recall.

        Order: original, normalized, expanded, key-term short form. Later
        entries are only added when they differ from the original; callers
        consuming the output as a set should de-duplicate.
        """
        variations = [query]

        normalized = self.normalize(query)
        if normalized != query:
            variations.append(normalized)

        expanded = self.expand(query)
        if expanded != query:
            variations.append(expanded)

        if len(query.split()) > LONG_QUERY_WORDS:
            key_terms = self.extract_key_terms(query)
            if len(key_terms) >= 3:
                variations.append(" ".join(key_terms[:3]))

        return variations


_default_preprocessor = QueryPreprocessor()


def normalize_query(query: str) -> str:
    """Convenience wrapper around QueryPreprocessor.normalize."""
    return _default_preprocessor.normalize(query)


def extract_key_terms(query: str, min_length: int = 2) -> List[str]:
    """Convenience wrapper around QueryPreprocessor.extract_key_terms."""
    if min_length == _default_preprocessor.min_term_length:
        return _default_preprocessor.extract_key_terms(query)
    return QueryPreprocessor(min_term_length=min_length).extract_key_terms(query)


def expand_query(query: str) -> str:
    """Convenience wrapper around QueryPreprocessor.expand."""
    return _default_preprocessor.expand(query)


def generate_variations(query: str) -> List[str]:
    """Convenience wrapper around QueryPreprocessor.generate_variations."""
    return _default_preprocessor.generate_variations(query)
