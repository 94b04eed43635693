"""Resolution service: cache lookup, table load and name resolution."""

from __future__ import annotations

import logging

from retrace_server.config import Failure, Resolution, ServerConfig
from retrace_server.errors import MappingCorrupt, MappingUnavailable, RequestMalformed
from retrace_server.mapping.cache import TableCache
from retrace_server.mapping.symbol_table import SymbolTable
from retrace_server.protocol import format_response, parse_request
from retrace_server.sources import MappingLocator

logger = logging.getLogger(__name__)


class ResolutionService:
    """Resolves obfuscated names against the mapping table of a version.

    Args:
        locator: Finds and parses the mapping source for a version.
        cache: Shared table cache. A new one is created if omitted.
    """

    def __init__(self, locator: MappingLocator, cache: TableCache | None = None) -> None:
        self.locator = locator
        self.cache = cache if cache is not None else TableCache()

    @classmethod
    def from_config(cls, config: ServerConfig) -> ResolutionService:
        return cls(
            MappingLocator(config.maps_dir, config.map_template),
            TableCache(config.cache_size),
        )

    def table_for(self, version: str) -> SymbolTable:
        return self.cache.get_or_create(version, lambda: self.locator.load(version))

    def handle(
        self,
        version: str,
        class_name: str,
        method_name: str | None = None,
        line_number: int | None = None,
    ) -> Resolution | Failure:
        try:
            table = self.table_for(version)
        except (MappingUnavailable, MappingCorrupt) as e:
            logger.warning(f"Cannot load mapping for version {version}: {e}")
            return Failure(e)
        return table.resolve(class_name, method_name, line_number)

    def handle_line(self, line: str) -> str:
        """Answer one wire request with one wire response (no newline)."""
        try:
            request = parse_request(line)
        except RequestMalformed as e:
            return format_response(Failure(e))
        outcome = self.handle(
            request.version, request.class_name, request.method_name, request.line_number
        )
        return format_response(outcome)
