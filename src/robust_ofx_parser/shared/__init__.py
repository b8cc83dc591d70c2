"""Shared utilities for robust OFX parsing.

This module provides shared data structures, configuration objects, result types,
and logging helpers used across all processing layers.
"""

from .config import (
    ApiConfig,
    CharacterConfig,
    ConfigError,
    ConfigValidationError,
    GlobalConfig,
    MappingConfig,
    ParserConfig,
    TokenizerConfig,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    OFXParseError,
    PerformanceMetrics,
)

__all__ = [
    "ApiConfig",
    "CharacterConfig",
    "ConfigError",
    "ConfigValidationError",
    "GlobalConfig",
    "MappingConfig",
    "ParserConfig",
    "TokenizerConfig",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "OFXParseError",
    "PerformanceMetrics",
]
