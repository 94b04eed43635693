"""Bounded version -> SymbolTable cache."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable

from retrace_server.config import DEFAULT_CACHE_SIZE
from retrace_server.mapping.symbol_table import SymbolTable

logger = logging.getLogger(__name__)


class TableCache:
    """Keeps at most `capacity` symbol tables, evicting in insertion order.

    Eviction is FIFO: reading an entry does not move it. A single lock covers
    both the lookup and, on a miss, the build, so table builds are serialised
    process-wide and a lookup waits while any build is in progress.
    """

    def __init__(self, capacity: int = DEFAULT_CACHE_SIZE) -> None:
        if capacity < 1:
            raise ValueError(f"cache capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._lock = threading.Lock()
        self._tables: OrderedDict[str, SymbolTable] = OrderedDict()

    def get_or_create(self, version: str, build_fn: Callable[[], SymbolTable]) -> SymbolTable:
        """Return the table for a version, building it with build_fn on a miss.

        Exceptions from build_fn propagate and leave the cache unchanged.
        """
        with self._lock:
            table = self._tables.get(version)
            if table is not None:
                return table

            logger.info(f"Loading mapping table for version {version}")
            table = build_fn()
            self._tables[version] = table

            while len(self._tables) > self.capacity:
                evicted, _ = self._tables.popitem(last=False)
                logger.info(f"Evicted mapping table for version {evicted}")
            return table

    def versions(self) -> list[str]:
        """Resident versions, oldest insertion first."""
        with self._lock:
            return list(self._tables)

    def __contains__(self, version: object) -> bool:
        with self._lock:
            return version in self._tables

    def __len__(self) -> int:
        with self._lock:
            return len(self._tables)
