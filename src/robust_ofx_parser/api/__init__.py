"""Public parsing API for robust OFX parsing.

Progressive API disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_bytes(), parse_file()
- Level 2: Configured parser - OFXParser class
- Level 3: Financial records - load_financial_information(), OFXParser.parse_financial()
- Level 4: Integration adapters - get_adapter("lxml"), get_adapter("pandas")
"""

from .adapters import (
    AdapterMetadata,
    AdapterRegistry,
    AdapterType,
    ConversionResult,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    list_available_adapters,
    register_adapter,
)
from .parser import (
    OFXParser,
    load_financial_information,
    parse,
    parse_bytes,
    parse_file,
    parse_string,
)

__all__ = [
    "AdapterMetadata",
    "AdapterRegistry",
    "AdapterType",
    "ConversionResult",
    "IntegrationAdapter",
    "LxmlAdapter",
    "OFXParser",
    "PandasAdapter",
    "get_adapter",
    "list_available_adapters",
    "load_financial_information",
    "parse",
    "parse_bytes",
    "parse_file",
    "parse_string",
    "register_adapter",
]
