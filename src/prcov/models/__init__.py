"""Data models for prcov."""

from prcov.models.coverage import (
    LineDetail,
    LinesSummary,
    RawCoverageEntry,
    Report,
    UncoveredLine,
)

__all__ = [
    "LineDetail",
    "LinesSummary",
    "RawCoverageEntry",
    "Report",
    "UncoveredLine",
]
