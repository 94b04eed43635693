"""Read-only lookup tables built from a mapping table: class index + method index."""

from __future__ import annotations

import os
from types import MappingProxyType
from typing import Iterable, Mapping

from retrace_server.config import (
    NO_LINE,
    ClassMapping,
    MappingRecord,
    MethodCandidate,
    MethodMapping,
    Resolution,
)
from retrace_server.mapping.parser import parse_mapping, read_mapping


class SymbolTableBuilder:
    """Accumulates mapping records and publishes a SymbolTable.

    class_index: obfuscated class name -> original class name
    method_index: original class name -> obfuscated method name -> [MethodCandidate]
    """

    def __init__(self) -> None:
        self.class_index: dict[str, str] = {}
        self.method_index: dict[str, dict[str, list[MethodCandidate]]] = {}

    def add(self, record: MappingRecord) -> None:
        if isinstance(record, ClassMapping):
            self.add_class(record.original, record.obfuscated)
        elif isinstance(record, MethodMapping):
            self.add_method(
                record.class_name, record.obfuscated,
                MethodCandidate(record.first_line, record.last_line, record.original),
            )
        # Field mappings carry nothing a lookup needs.

    def add_class(self, original: str, obfuscated: str) -> None:
        self.class_index[obfuscated] = original

    def add_method(self, class_name: str, obfuscated: str, candidate: MethodCandidate) -> None:
        # Keyed by the original class name, the way the table groups members.
        methods = self.method_index.setdefault(class_name, {})
        # A list, not a set: identical entries are kept in table order.
        methods.setdefault(obfuscated, []).append(candidate)

    def build(self) -> SymbolTable:
        method_index = {
            class_name: MappingProxyType({
                name: tuple(candidates) for name, candidates in methods.items()
            })
            for class_name, methods in self.method_index.items()
        }
        return SymbolTable(dict(self.class_index), method_index)


class SymbolTable:
    """Immutable name/line resolution over one mapping table.

    Nothing mutates a SymbolTable after construction, so resolve() is safe to
    call from any number of threads without locking.
    """

    def __init__(
        self,
        class_index: dict[str, str],
        method_index: dict[str, Mapping[str, tuple[MethodCandidate, ...]]],
    ) -> None:
        self._class_index: Mapping[str, str] = MappingProxyType(class_index)
        self._method_index: Mapping[str, Mapping[str, tuple[MethodCandidate, ...]]] = (
            MappingProxyType(method_index)
        )

    @classmethod
    def from_records(cls, records: Iterable[MappingRecord]) -> SymbolTable:
        builder = SymbolTableBuilder()
        for record in records:
            builder.add(record)
        return builder.build()

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> SymbolTable:
        return cls.from_records(parse_mapping(lines))

    @classmethod
    def from_text(cls, text: str) -> SymbolTable:
        return cls.from_lines(text.splitlines())

    @classmethod
    def from_file(cls, path: str | os.PathLike) -> SymbolTable:
        return cls.from_records(read_mapping(path))

    @property
    def class_index(self) -> Mapping[str, str]:
        return self._class_index

    @property
    def method_index(self) -> Mapping[str, Mapping[str, tuple[MethodCandidate, ...]]]:
        return self._method_index

    def original_class_name(self, obfuscated: str) -> str:
        """Return the original class name, or the input if it is not mapped."""
        return self._class_index.get(obfuscated, obfuscated)

    def original_method_names(
        self, class_name: str, obfuscated: str, line_number: int = NO_LINE
    ) -> list[str]:
        """Return original names of the methods matching a line.

        class_name must already be resolved. Falls back to [obfuscated] when
        nothing matches.
        """
        candidates = self._method_index.get(class_name, {}).get(obfuscated, ())
        names = [c.original_name for c in candidates if c.matches(line_number)]
        return names or [obfuscated]

    def resolve(
        self,
        class_name: str,
        method_name: str | None = None,
        line_number: int | None = None,
    ) -> Resolution:
        """Resolve an obfuscated class name and, optionally, a method name."""
        original = self.original_class_name(class_name)
        if method_name is None:
            return Resolution(original)
        if line_number is None:
            line_number = NO_LINE
        return Resolution(original, self.original_method_names(original, method_name, line_number))

    def class_count(self) -> int:
        return len(self._class_index)

    def method_count(self) -> int:
        return sum(len(methods) for methods in self._method_index.values())

    def candidate_count(self) -> int:
        return sum(
            len(candidates)
            for methods in self._method_index.values()
            for candidates in methods.values()
        )
