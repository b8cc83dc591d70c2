"""Command-line interface module for Robust OFX Parser.

This module provides CLI tools for parsing OFX statements, inspecting the token
stream, and summarizing accounts and transactions.
"""

from .main import main

__all__ = ["main"]
