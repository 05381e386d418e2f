"""
InterfaceIndexRegistry: stable interface name -> ifIndex mapping.

RFC1213 requires ifIndex to stay constant at least from one
re-initialization of the management system to the next. Indices are handed
out from 1 in the order interfaces are first seen in the kernel's own
enumeration order, and are never reused for a different name while the
registry lives.
"""

import logging
import threading
from typing import Dict, List

from linux_mib.errors import NotFoundError
from linux_mib.types import InterfaceLister

logger = logging.getLogger(__name__)


class InterfaceIndexRegistry:
    """Assigns and remembers ifIndex values."""

    def __init__(self, lister: InterfaceLister) -> None:
        """
        Args:
            lister: Returns the currently visible interface names in native
                enumeration order (no sorting is applied)
        """
        self._lister = lister
        self._indexes: Dict[str, int] = {}
        self._next_index = 1
        self._lock = threading.Lock()

    def ensure_indexed(self) -> List[str]:
        """Enumerate interfaces, indexing any not seen before.

        Returns:
            The currently visible interface names, in enumeration order
        """
        names = list(self._lister())
        with self._lock:
            for name in names:
                if name not in self._indexes:
                    self._indexes[name] = self._next_index
                    logger.info(f"Assigned ifIndex {self._next_index} to {name}")
                    self._next_index += 1
        return names

    def index_of(self, name: str) -> int:
        """Return the ifIndex of an interface.

        Raises:
            NotFoundError: The name has never been seen, even after a fresh
                enumeration
        """
        index = self._indexes.get(name)
        if index is not None:
            return index

        self.ensure_indexed()
        index = self._indexes.get(name)
        if index is None:
            raise NotFoundError(name)
        return index

    def snapshot(self) -> Dict[str, int]:
        """Copy of every assignment made so far, including vanished interfaces."""
        with self._lock:
            return dict(self._indexes)
