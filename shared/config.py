"""
Configuration module for the fusion core.
Manages environment variables and settings with validation.
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from retrieval.types import FusionOptions, InvalidConfigurationError


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class FusionConfig:
    """Default fusion parameters."""
    method: str = field(default_factory=lambda: os.getenv("FUSION_METHOD", "rrf"))
    rrf_constant: float = field(default_factory=lambda: float(os.getenv("FUSION_RRF_CONSTANT", "60")))
    dense_weight: float = field(default_factory=lambda: float(os.getenv("FUSION_DENSE_WEIGHT", "0.7")))
    lexical_weight: float = field(default_factory=lambda: float(os.getenv("FUSION_LEXICAL_WEIGHT", "0.3")))
    default_k: int = field(default_factory=lambda: int(os.getenv("FUSION_DEFAULT_K", "10")))

    def to_options(self, k: Optional[int] = None) -> FusionOptions:
        """Build FusionOptions from these defaults."""
        return FusionOptions(
            k=self.default_k if k is None else k,
            dense_weight=self.dense_weight,
            lexical_weight=self.lexical_weight,
            method=self.method,
            rrf_constant=self.rrf_constant,
        )


@dataclass
class CacheConfig:
    """Result cache configuration."""
    ttl_seconds: float = field(default_factory=lambda: float(os.getenv("CACHE_TTL_SECONDS", "300")))
    max_entries: int = field(default_factory=lambda: int(os.getenv("CACHE_MAX_ENTRIES", "1000")))


@dataclass
class QualityConfig:
    """Quality scoring weights - need not sum to 1."""
    diversity_weight: float = 0.3
    relevance_weight: float = 0.5
    coverage_weight: float = 0.2
    min_term_length: int = 2


@dataclass
class OptimizerConfig:
    """Adaptive optimizer configuration."""
    adaptive_weights: bool = field(default_factory=lambda: _env_bool("OPTIMIZER_ADAPTIVE_WEIGHTS", "true"))
    learning_rate: float = field(default_factory=lambda: float(os.getenv("OPTIMIZER_LEARNING_RATE", "0.1")))
    confidence_threshold: float = 0.7
    enable_caching: bool = field(default_factory=lambda: _env_bool("OPTIMIZER_ENABLE_CACHING", "true"))
    enable_monitoring: bool = field(default_factory=lambda: _env_bool("OPTIMIZER_ENABLE_MONITORING", "true"))
    history_size: int = field(default_factory=lambda: int(os.getenv("OPTIMIZER_HISTORY_SIZE", "10000")))
    rrf_constant: float = 60
    # Fetch this many times the limit from each backend
    fetch_multiplier: int = 2
    assess_quality: bool = True
    # Quality recorded when assess_quality is off
    assumed_quality: float = 0.8
    learn_from_searches: bool = False
    min_learning_quality: float = 0.5
    cache: CacheConfig = field(default_factory=CacheConfig)
    quality: QualityConfig = field(default_factory=QualityConfig)

    def __post_init__(self):
        if not 0.0 <= self.learning_rate <= 1.0:
            raise InvalidConfigurationError(
                f"learning_rate must be in [0, 1], got {self.learning_rate}"
            )
        if self.fetch_multiplier < 1:
            raise InvalidConfigurationError(
                f"fetch_multiplier must be >= 1, got {self.fetch_multiplier}"
            )
        if self.rrf_constant <= -1:
            raise InvalidConfigurationError(
                f"rrf_constant must be > -1, got {self.rrf_constant}"
            )


@dataclass
class Settings:
    """Main settings loaded from environment."""

    LOG_LEVEL: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    DEBUG: bool = field(default_factory=lambda: _env_bool("DEBUG", "false"))

    fusion: FusionConfig = field(default_factory=FusionConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Configure root logging with the service format."""
    settings = get_settings()
    level = level or ("DEBUG" if settings.DEBUG else settings.LOG_LEVEL)
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
