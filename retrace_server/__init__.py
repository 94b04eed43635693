"""Retrace server - resolve obfuscated Java names using ProGuard mapping tables."""

from retrace_server.mapping.cache import TableCache
from retrace_server.mapping.symbol_table import SymbolTable
from retrace_server.service import ResolutionService

__version__ = "0.1.0"
__all__ = ["ResolutionService", "SymbolTable", "TableCache"]
