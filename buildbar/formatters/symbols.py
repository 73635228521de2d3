"""Symbol definitions with unicode/ASCII fallbacks.

Provides a clean API for accessing the glyphs used by the status lines and
progress bars, falling back to ASCII when the diagnostic stream cannot
encode them or colors are disabled.

Usage:
    symbols = SymbolsFormatter()
    print(symbols.Check)  # Returns "✓" or "+"
    print(symbols.BarDone * 3)  # Returns "███" or "###"
"""

import platform
import sys
from dataclasses import dataclass
from functools import cached_property


@dataclass(frozen=True)
class Symbol:
    """A symbol with a unicode glyph and an ASCII fallback."""

    unicode: str
    ascii: str


class Symbols:
    """Symbol definitions as class attributes."""

    # Group markers
    Check = Symbol("✓", "+")
    Cross = Symbol("✗", "x")
    Bullet = Symbol("•", "*")
    Item = Symbol("‣", ">")
    Error = Symbol("❌", "x")

    # Progress bar segments
    BarFailed = Symbol("█", "!")
    BarDone = Symbol("█", "#")
    BarRunning = Symbol("▓", "+")
    BarRemaining = Symbol("▒", "-")


class SymbolsFormatter:
    """Provides symbols with automatic unicode/ASCII fallback.

    Unicode is disabled when no_color=True or when stderr's encoding can't
    carry it.
    """

    def __init__(self, no_color: bool = False):
        """Initialize the symbols formatter.

        Args:
            no_color: If True, always use ASCII symbols
        """
        self._no_color = no_color

    @cached_property
    def supports_unicode(self) -> bool:
        """Detect if the diagnostic stream can display the unicode glyphs."""
        if self._no_color:
            return False

        if platform.system() == "Windows":
            return False

        encoding = getattr(sys.stderr, "encoding", None)
        if not encoding:
            return False

        return any(enc in encoding.lower() for enc in ("utf-8", "utf8", "utf-16", "utf16"))

    def get(self, symbol: Symbol) -> str:
        """Get the resolved symbol string."""
        return symbol.unicode if self.supports_unicode else symbol.ascii

    @property
    def Check(self) -> str:
        return self.get(Symbols.Check)

    @property
    def Cross(self) -> str:
        return self.get(Symbols.Cross)

    @property
    def Bullet(self) -> str:
        return self.get(Symbols.Bullet)

    @property
    def Item(self) -> str:
        return self.get(Symbols.Item)

    @property
    def Error(self) -> str:
        return self.get(Symbols.Error)

    @property
    def BarFailed(self) -> str:
        return self.get(Symbols.BarFailed)

    @property
    def BarDone(self) -> str:
        return self.get(Symbols.BarDone)

    @property
    def BarRunning(self) -> str:
        return self.get(Symbols.BarRunning)

    @property
    def BarRemaining(self) -> str:
        return self.get(Symbols.BarRemaining)
