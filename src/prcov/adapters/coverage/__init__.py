"""Coverage report parsers."""

from prcov.adapters.coverage.lcov import LcovParser, ParseError

__all__ = [
    "LcovParser",
    "ParseError",
]
