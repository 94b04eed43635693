"""Version -> mapping file convention."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterator

from retrace_server.config import DEFAULT_MAP_TEMPLATE, DEFAULT_MAPS_DIR, MappingRecord
from retrace_server.errors import MappingUnavailable
from retrace_server.mapping.parser import read_mapping
from retrace_server.mapping.symbol_table import SymbolTable

logger = logging.getLogger(__name__)


class MappingLocator:
    """Finds the mapping file for a version, e.g. /maps/aerofs-1.2.3-public.map."""

    def __init__(self, maps_dir: str = DEFAULT_MAPS_DIR, template: str = DEFAULT_MAP_TEMPLATE) -> None:
        self.maps_dir = Path(maps_dir)
        self.template = template

    def path_for(self, version: str) -> Path:
        if not version or version in (".", "..") or "/" in version or os.sep in version:
            raise MappingUnavailable(f"invalid version: {version!r}")
        return self.maps_dir / self.template.format(version=version)

    def open(self, version: str) -> Iterator[MappingRecord]:
        """Return the record stream for a version's mapping file."""
        path = self.path_for(version)
        if not path.is_file():
            raise MappingUnavailable(f"file not found: {path}")
        logger.debug(f"Reading mapping file {path}")
        return read_mapping(path)

    def load(self, version: str) -> SymbolTable:
        return SymbolTable.from_records(self.open(version))
