"""Configuration classes for OFX parsing.

This module provides configuration objects for every processing layer: byte
decoding, tokenization, domain mapping, the public API, and global settings.
"""

import codecs
import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional

VALID_DECODE_ERRORS = ("strict", "replace", "ignore")
VALID_OUTPUT_FORMATS = ("json", "text", "ofx")
VALID_LOGGING_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

_COMPONENT_FIELDS = ("character", "tokenizer", "mapping", "api", "global_")


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass
class CharacterConfig:
    """Configuration for turning raw bytes into text."""

    fallback_encoding: str = "cp1252"
    detect_bom: bool = True
    use_header_charset: bool = True
    decode_errors: str = "replace"
    max_input_size_bytes: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate character configuration."""
        if not self.fallback_encoding:
            raise ValueError("fallback_encoding cannot be empty")
        try:
            codec = codecs.lookup(self.fallback_encoding)
        except LookupError as e:
            raise ValueError(f"fallback_encoding is not a known codec: {e}") from e
        if not getattr(codec, "_is_text_encoding", True):
            raise ValueError(
                f"fallback_encoding must be a text encoding: {self.fallback_encoding}"
            )
        if self.decode_errors not in VALID_DECODE_ERRORS:
            raise ValueError(f"decode_errors must be one of {list(VALID_DECODE_ERRORS)}")
        if self.max_input_size_bytes is not None and self.max_input_size_bytes <= 0:
            raise ValueError("max_input_size_bytes must be > 0 or None")


@dataclass
class TokenizerConfig:
    """Configuration for tokenization and tree building."""

    collect_headers: bool = True
    max_tokens: Optional[int] = None

    def __post_init__(self) -> None:
        """Validate tokenizer configuration."""
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValueError("max_tokens must be > 0 or None")


@dataclass
class MappingConfig:
    """Configuration for projecting element trees onto financial records."""

    strip_values: bool = True


@dataclass
class ApiConfig:
    """Configuration for API layer behavior."""

    default_output_format: str = "json"
    include_headers: bool = True
    json_indent: int = 2

    def __post_init__(self) -> None:
        """Validate API configuration."""
        if self.default_output_format not in VALID_OUTPUT_FORMATS:
            raise ValueError(
                f"default_output_format must be one of {list(VALID_OUTPUT_FORMATS)}"
            )
        if self.json_indent < 0:
            raise ValueError("json_indent must be >= 0")


@dataclass
class GlobalConfig:
    """Settings that apply across all components."""

    logging_level: str = "WARNING"

    def __post_init__(self) -> None:
        """Validate global configuration."""
        if self.logging_level not in VALID_LOGGING_LEVELS:
            raise ValueError(f"logging_level must be one of {list(VALID_LOGGING_LEVELS)}")


@dataclass(frozen=True)
class ParserConfig:
    """Immutable configuration for all OFX parser components.

    Frozen so that a single instance can be shared between parser objects and
    threads; use :meth:`override` to derive modified copies.
    """

    character: CharacterConfig = field(default_factory=CharacterConfig)
    tokenizer: TokenizerConfig = field(default_factory=TokenizerConfig)
    mapping: MappingConfig = field(default_factory=MappingConfig)
    api: ApiConfig = field(default_factory=ApiConfig)
    global_: GlobalConfig = field(default_factory=GlobalConfig)

    name: Optional[str] = None
    description: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate the complete parser configuration."""
        try:
            self.character.__post_init__()
            self.tokenizer.__post_init__()
            self.api.__post_init__()
            self.global_.__post_init__()
        except ValueError as e:
            raise ConfigValidationError(str(e)) from e

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Args:
            **kwargs: Fields to override, using ``component__field`` notation for
                component settings

        Returns:
            New ParserConfig instance with overrides applied

        Example:
            >>> config = ParserConfig()
            >>> new_config = config.override(
            ...     character__fallback_encoding="latin-1",
            ...     api__default_output_format="text"
            ... )
        """
        nested_overrides: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}
        for key, value in kwargs.items():
            if "__" in key:
                component, field_name = key.split("__", 1)
                if component not in _COMPONENT_FIELDS:
                    raise ConfigValidationError(
                        f"Unknown configuration component: {component}",
                        field_name=key,
                        suggestions=list(_COMPONENT_FIELDS),
                    )
                nested_overrides.setdefault(component, {})[field_name] = value
            else:
                top_level[key] = value

        new_fields: Dict[str, Any] = {}
        try:
            for component, values in nested_overrides.items():
                new_fields[component] = replace(getattr(self, component), **values)
        except (TypeError, ValueError) as e:
            raise ConfigValidationError(str(e), field_name=component) from e
        new_fields.update(top_level)

        try:
            return replace(self, **new_fields)
        except TypeError as e:
            raise ConfigValidationError(str(e)) from e

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        def _dataclass_to_dict(obj: Any) -> Any:
            if hasattr(obj, "__dataclass_fields__"):
                return {
                    name: _dataclass_to_dict(getattr(obj, name))
                    for name in obj.__dataclass_fields__
                }
            if isinstance(obj, Enum):
                return obj.name
            if isinstance(obj, (list, tuple)):
                return [_dataclass_to_dict(item) for item in obj]
            return obj

        return _dataclass_to_dict(self)

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos in configuration files surface
        immediately instead of being silently ignored.

        Args:
            data: Dictionary containing configuration data

        Returns:
            ParserConfig instance created from dictionary
        """
        component_types = {
            "character": CharacterConfig,
            "tokenizer": TokenizerConfig,
            "mapping": MappingConfig,
            "api": ApiConfig,
            "global_": GlobalConfig,
        }
        field_values: Dict[str, Any] = {}
        for key, value in data.items():
            if key in component_types:
                try:
                    field_values[key] = component_types[key](**value)
                except (TypeError, ValueError) as e:
                    raise ConfigValidationError(str(e), field_name=key) from e
            elif key in ("name", "description"):
                field_values[key] = value
            else:
                raise ConfigValidationError(
                    f"Unknown configuration key: {key}", field_name=key
                )
        return cls(**field_values)

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        try:
            data = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise ConfigValidationError(f"Invalid configuration JSON: {e}") from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "ParserConfig":
        """Create the default configuration."""
        return cls(name="default")

    @classmethod
    def strict(cls) -> "ParserConfig":
        """Create a preset that refuses undecodable input instead of replacing it."""
        return cls(
            character=CharacterConfig(decode_errors="strict"),
            name="strict",
            description="Fail on bytes that cannot be decoded with the detected charset",
        )

    @classmethod
    def lenient(cls) -> "ParserConfig":
        """Create a preset that decodes anything, falling back to latin-1."""
        return cls(
            character=CharacterConfig(fallback_encoding="latin-1", decode_errors="replace"),
            name="lenient",
            description="Decode any byte sequence and keep as much content as possible",
        )
