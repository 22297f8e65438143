"""
Pydantic schemas for exported and imported optimizer state.
"""

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field

from query_processing.classifier import QueryType


class QueryPatternSchema(BaseModel):
    """Serialized learned pattern for a single query string."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., description="Exact query string the pattern belongs to")
    query_type: QueryType = Field(default=QueryType.UNKNOWN, alias="queryType")
    optimal_weights: Tuple[float, float] = Field(
        ..., alias="optimalWeights", description="(dense_weight, lexical_weight)"
    )
    confidence: float = Field(..., ge=0.0, le=1.0)
    sample_count: int = Field(default=1, ge=1, alias="sampleCount")
