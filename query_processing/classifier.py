"""
Query classification for fusion weighting.

Query types:
- factual: specific facts, favor lexical search
- conceptual: explanations and comparisons, favor dense search
- procedural: how-to and step-by-step, lean dense
- unknown: no indicator matched
"""

import logging
import re
from enum import Enum
from typing import Dict, List, Tuple

logger = logging.getLogger(__name__)


class QueryType(str, Enum):
    FACTUAL = "factual"
    CONCEPTUAL = "conceptual"
    PROCEDURAL = "procedural"
    UNKNOWN = "unknown"


# Checked in this order; first match wins
QUERY_KEYWORDS: List[Tuple[QueryType, List[str]]] = [
    (
        QueryType.FACTUAL,
        ["what", "when", "where", "who", "which", "how many", "how much"],
    ),
    (
        QueryType.CONCEPTUAL,
        ["why", "how does", "explain", "describe", "compare", "difference"],
    ),
    (
        QueryType.PROCEDURAL,
        ["how to", "steps", "process", "procedure", "guide", "tutorial"],
    ),
]

# (dense_weight, lexical_weight)
DEFAULT_WEIGHTS: Dict[QueryType, Tuple[float, float]] = {
    QueryType.FACTUAL: (0.3, 0.7),
    QueryType.CONCEPTUAL: (0.8, 0.2),
    QueryType.PROCEDURAL: (0.6, 0.4),
    QueryType.UNKNOWN: (0.7, 0.3),
}


def _compile(keywords: List[str]) -> re.Pattern:
    return re.compile("|".join(re.escape(kw) for kw in keywords), re.IGNORECASE)


class QueryClassifier:
    """
    Classify queries to pick default fusion weights.

    Keywords match anywhere in the query, so inflected forms count:
    "explaining" is conceptual and "tutorials" is procedural.

    Usage:
        classifier = QueryClassifier()
        query_type = classifier.classify("How to rotate API keys?")
        dense_w, lexical_w = classifier.default_weights(query_type)
    """

    def __init__(self, default_weights: Dict[QueryType, Tuple[float, float]] = None):
        self._patterns = [(qt, _compile(kws)) for qt, kws in QUERY_KEYWORDS]
        self._default_weights = dict(DEFAULT_WEIGHTS)
        if default_weights:
            self._default_weights.update(default_weights)

    def classify(self, query: str) -> QueryType:
        """Return the first category whose keywords appear in the query."""
        for query_type, pattern in self._patterns:
            if pattern.search(query):
                return query_type
        return QueryType.UNKNOWN

    def default_weights(self, query_type: QueryType) -> Tuple[float, float]:
        """Category default (dense_weight, lexical_weight)."""
        return self._default_weights[query_type]

    def classify_with_weights(self, query: str) -> Tuple[QueryType, Tuple[float, float]]:
        """
        Classify a query and return its default weights.

        Returns:
            (query_type, (dense_weight, lexical_weight))
        """
        query_type = self.classify(query)
        weights = self.default_weights(query_type)
        logger.debug(
            f"Query type: {query_type.value}, weights: dense={weights[0]}, lex={weights[1]}"
        )
        return query_type, weights
