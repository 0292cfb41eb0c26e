"""LCOV tracefile parser.

Parses the LCOV ``.info`` text format (as produced by lcov/geninfo, c8, nyc,
jest, cargo-llvm-cov, coverage.py's ``lcov`` command, ...) into a
:class:`~prcov.models.coverage.Report`. Only line coverage is kept; function
and branch records are skipped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from prcov.models.coverage import LineDetail, LinesSummary, RawCoverageEntry, Report

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────

# LCOV record keys
_LCOV_TN = "TN"
_LCOV_SF = "SF"
_LCOV_DA = "DA"
_LCOV_LF = "LF"
_LCOV_LH = "LH"
_LCOV_END = "end_of_record"
_LCOV_DA_PARTS = 2

_PERCENT = 100.0


class ParseError(Exception):
    """Raised when report content is not a valid LCOV tracefile."""


@dataclass
class _LcovRecordState:
    title: str = ""
    path: str | None = None
    da: list[LineDetail] = field(default_factory=list)
    found: int | None = None
    hit: int | None = None

    def to_entry(self) -> RawCoverageEntry:
        assert self.path is not None
        found = self.found if self.found is not None else len(self.da)
        hit = self.hit if self.hit is not None else sum(1 for d in self.da if d.hit > 0)
        return RawCoverageEntry(
            file=self.path,
            title=self.title,
            lines=LinesSummary(found=found, hit=hit, details=tuple(self.da)),
        )


def _parse_int(value: str, key: str, line_no: int) -> int:
    try:
        return int(value.strip())
    except ValueError as exc:
        raise ParseError(f"Invalid {key} value {value!r} on line {line_no}") from exc


def to_report(entries: list[RawCoverageEntry]) -> Report:
    """Aggregate parsed entries into a :class:`Report`.

    The percentage is a single ratio over all files, so every file weighs by
    its own number of instrumented lines.
    """
    hit = sum(entry.lines.hit for entry in entries)
    found = sum(entry.lines.found for entry in entries)

    if found == 0:
        return Report(percentage=0.0, files=())

    # LH may exceed LF in hand-edited reports; keep the percentage bounded.
    percentage = min(hit / found * _PERCENT, _PERCENT)
    return Report(percentage=percentage, files=tuple(entries))


class LcovParser:
    """Reads and parses LCOV reports."""

    def read_file(self, path: str | Path) -> str:
        """Return the report text. ``OSError`` propagates to the caller.

        Raises:
            ParseError: If the file is not UTF-8 text.
        """
        try:
            return Path(path).read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(f"Report {path} is not valid UTF-8 text: {exc}") from exc

    def parse(self, content: str) -> Report:
        """Parse LCOV text into a :class:`Report`.

        Blank content is a valid report with nothing to cover.

        Raises:
            ParseError: If a record is malformed or no record is found.
        """
        if not content.strip():
            return to_report([])

        entries = self._parse_records(content)
        if not entries:
            raise ParseError("Failed to parse string: no LCOV records found")

        logger.debug("Parsed %d LCOV record(s)", len(entries))
        return to_report(entries)

    def report_from_file(self, path: str | Path) -> Report:
        """Read and parse the report at ``path``."""
        return self.parse(self.read_file(path))

    def _parse_records(self, content: str) -> list[RawCoverageEntry]:
        entries: list[RawCoverageEntry] = []
        state = _LcovRecordState()

        for line_no, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if not line:
                continue
            if line.lower() == _LCOV_END:
                if state.path is not None:
                    entries.append(state.to_entry())
                state = _LcovRecordState(title=state.title)
                continue
            if ":" not in line:
                raise ParseError(f"Unexpected content on line {line_no}: {line!r}")

            key, _, value = line.partition(":")
            self._apply_lcov_key(state, key.strip().upper(), value.strip(), line_no)

        if state.path is not None:
            entries.append(state.to_entry())
        return entries

    def _apply_lcov_key(self, state: _LcovRecordState, key: str, value: str, line_no: int) -> None:
        if key == _LCOV_TN:
            state.title = value
        elif key == _LCOV_SF:
            state.path = value
        elif key == _LCOV_DA:
            parts = value.split(",")
            if len(parts) < _LCOV_DA_PARTS:
                raise ParseError(f"Invalid DA record on line {line_no}: {value!r}")
            state.da.append(
                LineDetail(
                    line=_parse_int(parts[0], _LCOV_DA, line_no),
                    hit=_parse_int(parts[1], _LCOV_DA, line_no),
                )
            )
        elif key == _LCOV_LF:
            state.found = _parse_int(value, _LCOV_LF, line_no)
        elif key == _LCOV_LH:
            state.hit = _parse_int(value, _LCOV_LH, line_no)
