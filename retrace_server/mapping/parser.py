"""ProGuard mapping table reader.

Turns the text of a mapping table into a lazy stream of records. A table looks
like::

    com.foo.Bar -> a:
        int count -> a
        void doWork():10:20 -> b
        30:35:void helper(int) -> c

Top-level lines are class headers. Indented lines are members of the most
recent class: methods (they carry an argument list) or fields. Line ranges may
appear before the return type (``first:last:``, ProGuard/R8 output) or after
the argument list (``:first:last``); a leading range wins when both are given.
"""

from __future__ import annotations

import logging
import os
import re
from typing import Iterable, Iterator

from retrace_server.config import ClassMapping, FieldMapping, MappingRecord, MethodMapping
from retrace_server.errors import MappingCorrupt, MappingUnavailable

logger = logging.getLogger(__name__)

CLASS_RE = re.compile(r"^(?P<original>\S+)\s+->\s+(?P<obfuscated>[^\s:]+):$")

METHOD_RE = re.compile(
    r"^(?:(?P<first>[^\s:]+):(?P<last>[^\s:]+):)?"
    r"(?P<type>[^\s:(]+)\s+(?P<name>[^\s(]+)\((?P<args>[^)]*)\)"
    r"(?::(?P<tail_first>[^\s:]+)(?::(?P<tail_last>[^\s:]+))?)?"
    r"\s+->\s+(?P<obfuscated>\S+)$"
)

FIELD_RE = re.compile(r"^(?P<type>[^\s(]+)\s+(?P<name>[^\s(]+)\s+->\s+(?P<obfuscated>\S+)$")

DIGITS_RE = re.compile(r"[0-9]+")


def _line_number(value: str, line_no: int) -> int:
    if not DIGITS_RE.fullmatch(value):
        raise MappingCorrupt(f"line {line_no}: invalid line number {value!r}")
    return int(value)


def _line_range(match: re.Match, line_no: int) -> tuple[int, int]:
    """Pick the line range of a method entry, defaulting to 0:0."""
    if match.group("first") is not None:
        return (
            _line_number(match.group("first"), line_no),
            _line_number(match.group("last"), line_no),
        )
    if match.group("tail_first") is not None:
        first = _line_number(match.group("tail_first"), line_no)
        tail_last = match.group("tail_last")
        last = _line_number(tail_last, line_no) if tail_last is not None else first
        return first, last
    return 0, 0


def _parse_member(text: str, class_name: str, line_no: int) -> MappingRecord | None:
    m = METHOD_RE.match(text)
    if m:
        first, last = _line_range(m, line_no)
        return MethodMapping(
            class_name=class_name,
            return_type=m.group("type"),
            original=m.group("name"),
            arguments=m.group("args").strip(),
            obfuscated=m.group("obfuscated"),
            first_line=first,
            last_line=last,
            line_no=line_no,
        )

    m = FIELD_RE.match(text)
    if m:
        return FieldMapping(
            class_name=class_name,
            field_type=m.group("type"),
            original=m.group("name"),
            obfuscated=m.group("obfuscated"),
            line_no=line_no,
        )

    return None


def parse_mapping(lines: Iterable[str]) -> Iterator[MappingRecord]:
    """Yield mapping records from the lines of a mapping table.

    Unrecognised indented lines are skipped so newer mapping formats still
    load; an unrecognised top-level line raises MappingCorrupt.
    """
    class_name: str | None = None

    for line_no, raw in enumerate(lines, start=1):
        line = raw.rstrip("\r\n")
        text = line.strip()
        if not text or text.startswith("#"):
            continue

        if not line[0].isspace():
            m = CLASS_RE.match(text)
            if m is None:
                raise MappingCorrupt(f"line {line_no}: unrecognised class mapping {text!r}")
            class_name = m.group("original")
            yield ClassMapping(
                original=class_name,
                obfuscated=m.group("obfuscated"),
                line_no=line_no,
            )
            continue

        if class_name is None:
            logger.debug(f"Skipping member line {line_no} outside of a class: {text!r}")
            continue

        record = _parse_member(text, class_name, line_no)
        if record is None:
            logger.debug(f"Skipping unrecognised line {line_no}: {text!r}")
            continue
        yield record


def read_mapping(path: str | os.PathLike) -> Iterator[MappingRecord]:
    """Yield mapping records from a mapping file on disk."""
    try:
        f = open(path, encoding="utf-8-sig")
    except OSError as e:
        raise MappingUnavailable(f"cannot read {os.fspath(path)}: {e.strerror or e}") from e

    with f:
        try:
            yield from parse_mapping(f)
        except UnicodeDecodeError as e:
            raise MappingCorrupt(f"{os.fspath(path)}: {e}") from e
