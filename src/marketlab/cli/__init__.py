"""Market Lab CLI module.

Provides a Textual-based terminal interface for playing Market Lab.

Usage:
    marketlab

Or directly:
    python -m marketlab.cli.app
"""

from marketlab.cli.app import MarketLabApp, main

__all__ = ["MarketLabApp", "main"]
