"""Robust OFX Parser.

A never-fail parser for Open Financial Exchange documents. It handles the SGML
flavour of OFX, where leaf elements are usually left unclosed, with encoding
detection, a lazy tokenizer, a stack-based tree builder, and typed financial
records on top of the element tree.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_bytes(), parse_file()
- Level 2: Configured parser - OFXParser class
- Level 3: Financial records - load_financial_information(), FinancialInformation
- Level 4: Integration adapters - get_adapter("lxml"), get_adapter("pandas")
"""

__version__ = "0.1.0"
__author__ = "Robust OFX Parser Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Advanced configuration
from .api import (
    OFXParser,
    get_adapter,
    list_available_adapters,
    load_financial_information,
    parse,
    parse_bytes,
    parse_file,
    parse_string,
)

# Financial records
from .finance import FinancialInformation, Transaction

# Configuration classes for advanced usage
from .shared.config import ParserConfig
from .shared.result import DiagnosticSeverity, OFXParseError

# Lower level building blocks
from .tokenization import OFXTokenizer, tokenize
from .tree import OFXElement, OFXTreeBuilder, ParseResult, build_tree

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions (progressive disclosure entry point)
    "parse",
    "parse_string",
    "parse_bytes",
    "parse_file",

    # Level 2: Advanced parser class
    "OFXParser",

    # Level 3: Financial records
    "load_financial_information",
    "FinancialInformation",
    "Transaction",

    # Level 4: Integration adapters
    "get_adapter",
    "list_available_adapters",

    # Result objects and data structures
    "ParseResult",
    "OFXElement",
    "DiagnosticSeverity",
    "OFXParseError",

    # Building blocks
    "OFXTokenizer",
    "OFXTreeBuilder",
    "tokenize",
    "build_tree",

    # Configuration classes for advanced usage
    "ParserConfig",
]
