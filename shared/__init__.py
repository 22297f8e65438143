"""
Shared configuration and schemas.
"""

from .config import (
    CacheConfig,
    FusionConfig,
    OptimizerConfig,
    QualityConfig,
    Settings,
    configure_logging,
    get_settings,
)
from .schemas import QueryPatternSchema

__all__ = [
    "Settings",
    "FusionConfig",
    "CacheConfig",
    "QualityConfig",
    "OptimizerConfig",
    "get_settings",
    "configure_logging",
    "QueryPatternSchema",
]
