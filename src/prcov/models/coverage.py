"""Coverage report models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LineDetail:
    """Execution count of a single source line."""

    line: int
    """1-based line number."""

    hit: int
    """Number of times the line was executed."""


@dataclass(frozen=True)
class LinesSummary:
    """Line coverage block of one LCOV record."""

    found: int
    """Number of instrumented lines."""

    hit: int
    """Number of instrumented lines executed at least once."""

    details: tuple[LineDetail, ...] = ()
    """Per-line execution counts, in report order."""


@dataclass(frozen=True)
class RawCoverageEntry:
    """Coverage data for one source file, as found in the report."""

    file: str
    """Source file path (usually absolute)."""

    lines: LinesSummary
    """Line coverage block."""

    title: str = ""
    """Test name (``TN``) the record belongs to, if any."""


@dataclass(frozen=True)
class Report:
    """Parsed coverage report with its overall percentage."""

    percentage: float = 0.0
    """Overall line coverage (0.0 to 100.0)."""

    files: tuple[RawCoverageEntry, ...] = field(default_factory=tuple)
    """Per-file entries. Empty when there is nothing to cover."""


@dataclass(frozen=True)
class UncoveredLine:
    """A line reported with zero hits."""

    file: str
    number: int
