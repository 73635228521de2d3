"""Formatters package for buildbar output.

Usage:
    output = OutputFormatter(no_color=False)
    output.print(f"{output.symbols.Check} done")
"""

from .output import OutputFormatter
from .symbols import Symbol, Symbols, SymbolsFormatter

__all__ = [
    "OutputFormatter",
    "Symbol",
    "Symbols",
    "SymbolsFormatter",
]
