"""Waitable set of in-flight whitelist queries."""

import logging
import selectors
from typing import Iterator

from src.services.resolver_client import QueryHandle


logger = logging.getLogger(__name__)


class PendingQuerySet:
    """Owns the outstanding query handles of one whitelist check.

    Multiplexes readiness over every held handle so a single wait can
    surface answers from several zones at once. Handles leave the set
    either through `remove()` (caller reads them) or `clear()` (they are
    abandoned and their sockets released).

    Example:
        >>> pending = PendingQuerySet()
        >>> pending.add(handle)
        >>> for ready in pending.wait_ready(4.0):
        ...     pending.remove(ready)
        ...     answer = resolver.read_ready(ready)
    """

    def __init__(self):
        self._selector = selectors.DefaultSelector()
        self._handles: set[QueryHandle] = set()

    def __len__(self) -> int:
        return len(self._handles)

    def __contains__(self, handle: object) -> bool:
        return handle in self._handles

    def __iter__(self) -> Iterator[QueryHandle]:
        return iter(list(self._handles))

    def add(self, handle: QueryHandle) -> None:
        """Start tracking a handle.

        Raises:
            ValueError: If the handle is already held.
        """
        if handle in self._handles:
            raise ValueError(f"Query handle for {handle.qname} is already pending")

        self._selector.register(handle, selectors.EVENT_READ)
        self._handles.add(handle)

    def wait_ready(self, timeout: float) -> set[QueryHandle]:
        """Wait until at least one held handle is readable.

        Args:
            timeout: Maximum seconds to wait.

        Returns:
            set[QueryHandle]: Readable handles still held by this set;
                empty if the timeout elapsed first or nothing is held.
        """
        if not self._handles:
            return set()

        events = self._selector.select(timeout)
        return {key.fileobj for key, _ in events if key.fileobj in self._handles}

    def remove(self, handle: QueryHandle) -> None:
        """Stop tracking a handle without reading or closing it.

        Removing a handle that is not held is a no-op.
        """
        if handle not in self._handles:
            return

        self._selector.unregister(handle)
        self._handles.discard(handle)

    def clear(self) -> int:
        """Abandon every held handle and release its socket.

        Returns:
            int: Number of handles abandoned.
        """
        abandoned = 0
        for handle in list(self._handles):
            self.remove(handle)
            handle.close()
            abandoned += 1

        if abandoned:
            logger.debug(f"Abandoned {abandoned} pending whitelist queries")
        return abandoned

    def close(self) -> None:
        """Abandon all handles and release the selector."""
        self.clear()
        self._selector.close()

    def is_empty(self) -> bool:
        return not self._handles
