"""Coverage aggregate with the threshold and uncovered-line queries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from prcov.adapters.coverage.lcov import LcovParser
from prcov.models.coverage import Report, UncoveredLine

if TYPE_CHECKING:
    from pathlib import Path


class Coverage:
    """Read-only view over a parsed :class:`Report`."""

    def __init__(self, report: Report) -> None:
        self._report = report

    @classmethod
    def of(cls, report: Report) -> Coverage:
        return cls(report)

    @classmethod
    def from_report_file(cls, path: str | Path, parser: LcovParser | None = None) -> Coverage:
        """Build a coverage aggregate from an LCOV file.

        Raises:
            OSError: If the file cannot be read.
            ParseError: If the content is not valid LCOV.
        """
        parser = parser or LcovParser()
        return cls.of(parser.report_from_file(path))

    def get_percentage(self) -> float:
        return self._report.percentage

    def is_empty(self) -> bool:
        """Return True when the report has nothing to cover."""
        return not self._report.files

    def is_pass_threshold(self, threshold: float) -> bool:
        """Return True when coverage reaches ``threshold``; an empty report always passes."""
        return self.is_empty() or self._report.percentage >= threshold

    def get_uncovered_lines(self) -> list[UncoveredLine]:
        """Return lines with zero hits, by report order and then line number.

        Files whose hit count equals their found count are skipped even when
        their details list zero-hit lines.
        """
        uncovered: list[UncoveredLine] = []
        for entry in self._report.files:
            if entry.lines.found <= entry.lines.hit:
                continue
            details = sorted(entry.lines.details, key=lambda detail: detail.line)
            uncovered.extend(
                UncoveredLine(file=entry.file, number=detail.line)
                for detail in details
                if detail.hit == 0
            )
        return uncovered
