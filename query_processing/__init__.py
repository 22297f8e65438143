"""
Query Processing Module.

The query decides which retriever should lead.

This module provides:
- Query normalization, key term extraction and synonym expansion
- Query variations for better recall
- Query classification into factual / conceptual / procedural / unknown

Usage:
    from query_processing import QueryClassifier, QueryPreprocessor

    query_type = QueryClassifier().classify("What is the capital?")
    terms = QueryPreprocessor().extract_key_terms("What is the capital?")
"""

from .classifier import DEFAULT_WEIGHTS, QueryClassifier, QueryType
from .preprocessing import (
    STOP_WORDS,
    SYNONYMS,
    QueryPreprocessor,
    expand_query,
    extract_key_terms,
    generate_variations,
    normalize_query,
)

__all__ = [
    "QueryType",
    "QueryClassifier",
    "DEFAULT_WEIGHTS",
    "QueryPreprocessor",
    "STOP_WORDS",
    "SYNONYMS",
    "normalize_query",
    "extract_key_terms",
    "expand_query",
    "generate_variations",
]
