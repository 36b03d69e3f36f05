"""
Git blame output parser.

Turns raw ``git blame`` text into a map from destination line number to
:class:`~mrblame.models.LineAttribution`. Two layouts are understood and may
be mixed within one input:

Porcelain layout (``git blame --porcelain`` / ``--line-porcelain``)::

    d01a7c0493f2b3e4d5c6b7a8f9e0d1c2b3a4f5e6 1 1 3
    author Jane Doe
    author-mail <jane@example.com>
    author-time 1720540659
    author-tz +0200
    summary Add login form
    filename src/auth.ts
    \timport {

Compact layout (``git blame`` default)::

    d01a7c049 (Jane Doe 2025-07-09 17:57:39 +0200 1) import {
    ^abc1234  (Another Author 2024-01-15 10:30:00 +0000 42) const x = 1;

Uncommitted lines (all-zero commit id) are excluded and malformed input is
skipped silently; the parser never raises.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from ..models import LineAttribution

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "Unknown"

PORCELAIN_HEADER = re.compile(r"^\^?([0-9a-fA-F]{4,64}) (\d+) (\d+)(?: (\d+))?$")

COMPACT_LINE = re.compile(
    r"^\^?([0-9a-fA-F]+)\s+"
    r"(?:\S+\s+)?"  # optional filename column (blame with -f or renames)
    r"\((.*?)\s+(\d{4}-\d{2}-\d{2})\s+(\d{2}:\d{2}:\d{2})\s+([+-]\d{4})\s+(\d+)\)\s?(.*)$"
)

UNCOMMITTED_SHA = re.compile(r"^0+$")

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


@dataclass
class _CommitMetadata:
    author: str = ""
    author_email: str = ""
    author_time: Optional[int] = None
    author_tz: str = ""
    summary: str = ""


@dataclass
class _PendingRecord:
    commit_id: str
    final_line: int


def _parse_tz_offset(offset: str) -> timezone:
    """Convert a ``+HHMM`` / ``-HHMM`` offset to a timezone, UTC if malformed."""
    if not re.fullmatch(r"[+-]\d{4}", offset or ""):
        return timezone.utc
    sign = -1 if offset[0] == "-" else 1
    delta = timedelta(hours=int(offset[1:3]), minutes=int(offset[3:5]))
    return timezone(sign * delta)


def is_uncommitted(commit_id: str) -> bool:
    """True for the all-zero commit id git uses for not-yet-committed lines."""
    return bool(UNCOMMITTED_SHA.match(commit_id))


class BlameParser:
    """Lenient parser for git blame output.

    The parser keeps per-commit metadata across records because ``--porcelain``
    prints the author/summary block only for the first line of each commit.
    """

    def parse(self, output: str) -> Dict[int, LineAttribution]:
        """Parse blame output into a map keyed by destination line number.

        Args:
            output: Raw blame text in porcelain or compact layout

        Returns:
            Map of 1-based line number to LineAttribution; lines that could not
            be parsed, and uncommitted lines, are absent
        """
        result: Dict[int, LineAttribution] = {}
        if not output:
            return result

        commits: Dict[str, _CommitMetadata] = {}
        pending: Optional[_PendingRecord] = None
        skipped = 0

        for raw_line in output.splitlines():
            if raw_line.startswith("\t"):
                # Content line closes the current porcelain record
                if pending is not None:
                    self._emit_porcelain(result, pending, commits)
                    pending = None
                continue

            header = PORCELAIN_HEADER.match(raw_line)
            if header:
                # A new header while a record is open means the previous one was
                # truncated before its content line; it is dropped.
                commit_id = header.group(1).lower()
                pending = _PendingRecord(
                    commit_id=commit_id, final_line=int(header.group(3))
                )
                commits.setdefault(commit_id, _CommitMetadata())
                continue

            compact = COMPACT_LINE.match(raw_line)
            if compact:
                pending = None
                self._emit_compact(result, compact)
                continue

            if pending is not None:
                self._apply_metadata(commits[pending.commit_id], raw_line)
                continue

            if raw_line.strip():
                skipped += 1

        if skipped:
            logger.debug(f"Skipped {skipped} unparseable blame line(s)")
        return result

    @staticmethod
    def _apply_metadata(meta: _CommitMetadata, line: str) -> None:
        key, _, value = line.partition(" ")
        if key == "author":
            meta.author = value.strip()
        elif key == "author-mail":
            meta.author_email = value.strip().strip("<>")
        elif key == "author-time":
            try:
                meta.author_time = int(value.strip())
            except ValueError:
                pass
        elif key == "author-tz":
            meta.author_tz = value.strip()
        elif key == "summary":
            meta.summary = value

    @staticmethod
    def _emit_porcelain(
        result: Dict[int, LineAttribution],
        record: _PendingRecord,
        commits: Dict[str, _CommitMetadata],
    ) -> None:
        if is_uncommitted(record.commit_id) or record.final_line <= 0:
            return
        meta = commits.get(record.commit_id, _CommitMetadata())
        if meta.author_time is None:
            timestamp = EPOCH
        else:
            try:
                timestamp = datetime.fromtimestamp(
                    meta.author_time, tz=_parse_tz_offset(meta.author_tz)
                )
            except (OverflowError, OSError, ValueError):
                timestamp = EPOCH

        result[record.final_line] = LineAttribution(
            commit_id=record.commit_id,
            author=meta.author or UNKNOWN_AUTHOR,
            author_email=meta.author_email,
            timestamp=timestamp,
            summary=meta.summary,
            line_number=record.final_line,
        )

    @staticmethod
    def _emit_compact(result: Dict[int, LineAttribution], match: "re.Match") -> None:
        commit_id, author, date, time_of_day, tz, line_str, _content = match.groups()
        commit_id = commit_id.lower()
        line_number = int(line_str)
        if is_uncommitted(commit_id) or line_number <= 0:
            return
        try:
            timestamp = datetime.strptime(
                f"{date} {time_of_day}", "%Y-%m-%d %H:%M:%S"
            ).replace(tzinfo=_parse_tz_offset(tz))
        except ValueError:
            return

        result[line_number] = LineAttribution(
            commit_id=commit_id,
            author=author.strip() or UNKNOWN_AUTHOR,
            timestamp=timestamp,
            line_number=line_number,
        )


def parse_blame_output(output: str) -> Dict[int, LineAttribution]:
    """Parse git blame output; see :meth:`BlameParser.parse`."""
    return BlameParser().parse(output)
