"""Core data types and configuration for the retrace server."""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 50123
DEFAULT_MAPS_DIR = "/maps"
DEFAULT_MAP_TEMPLATE = "aerofs-{version}-public.map"
DEFAULT_CACHE_SIZE = 100
DEFAULT_MAX_LINE_LENGTH = 1024

# Line number used when a request carries none; only matches candidates
# without line information.
NO_LINE = -1


@dataclass(frozen=True)
class ClassMapping:
    original: str
    obfuscated: str
    line_no: int = 0


@dataclass(frozen=True)
class MethodMapping:
    class_name: str
    return_type: str
    original: str
    arguments: str
    obfuscated: str
    first_line: int = 0
    last_line: int = 0
    line_no: int = 0


@dataclass(frozen=True)
class FieldMapping:
    """Parsed so it can be skipped; never stored in a symbol table."""
    class_name: str
    field_type: str
    original: str
    obfuscated: str
    line_no: int = 0


MappingRecord = ClassMapping | MethodMapping | FieldMapping


@dataclass(frozen=True)
class MethodCandidate:
    first_line: int
    last_line: int
    original_name: str

    def matches(self, line_number: int) -> bool:
        # last_line == 0 means the entry has no line information
        return self.first_line <= line_number <= self.last_line or self.last_line == 0


@dataclass
class Resolution:
    class_name: str
    method_names: list[str] = field(default_factory=list)


@dataclass
class Failure:
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


@dataclass
class Request:
    version: str
    class_name: str
    method_name: str | None = None
    line_number: int = NO_LINE


@dataclass
class ServerConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    verbose: bool = False
    maps_dir: str = DEFAULT_MAPS_DIR
    map_template: str = DEFAULT_MAP_TEMPLATE
    cache_size: int = DEFAULT_CACHE_SIZE
    max_line_length: int = DEFAULT_MAX_LINE_LENGTH
