"""
Core data types shared by fusion, caching and optimization.

A SearchResult wraps an opaque chunk handle. Only the chunk id is used
for identity; the text is read by quality scoring and nothing else.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class InvalidConfigurationError(ValueError):
    """Raised when fusion, cache or optimizer parameters are invalid."""

    pass


class FusionMethod(str, Enum):
    """Fusion algorithms."""

    RRF = "rrf"
    MINMAX = "minmax"
    ZSCORE = "zscore"


class ResultSource(str, Enum):
    """Which backend(s) contributed a fused result."""

    DENSE = "dense"
    LEXICAL = "lexical"
    HYBRID = "hybrid"


@dataclass
class Chunk:
    """A retrieved passage. Content and metadata belong to the ingestion side."""

    id: str
    text: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    """A single ranked result."""

    chunk: Chunk
    score: float
    rank: int = 0
    source: Optional[ResultSource] = None

    @property
    def id(self) -> str:
        return self.chunk.id


@dataclass
class FusionOptions:
    """
    Options for fusing a dense and a lexical result list.

    Weights are applied as given and never renormalized, so
    dense_weight + lexical_weight may differ from 1.
    """

    k: int = 10
    dense_weight: float = 0.7
    lexical_weight: float = 0.3
    method: Union[FusionMethod, str] = FusionMethod.RRF
    rrf_constant: float = 60

    def __post_init__(self):
        if self.k < 0:
            raise InvalidConfigurationError(f"k must be >= 0, got {self.k}")
        # Rank 1 divides by rrf_constant + 1
        if self.rrf_constant <= -1:
            raise InvalidConfigurationError(
                f"rrf_constant must be > -1, got {self.rrf_constant}"
            )
