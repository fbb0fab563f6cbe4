"""Undo journal used to make in-memory mutations all-or-nothing."""

import logging
from contextlib import contextmanager
from typing import Callable, Iterator, List, Optional

logger = logging.getLogger(__name__)


class UndoJournal:
    """
    Collects undo callbacks while a transaction is open.

    On failure the callbacks run newest first and the exception propagates.
    Nested transactions join the outermost one.
    """

    def __init__(self):
        self._entries: Optional[List[Callable[[], None]]] = None

    @property
    def active(self) -> bool:
        return self._entries is not None

    def record(self, undo: Callable[[], None]) -> None:
        """Register an undo step; ignored outside a transaction."""
        if self._entries is not None:
            self._entries.append(undo)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._entries is not None:
            yield
            return

        self._entries = []
        try:
            yield
        except BaseException:
            entries, self._entries = self._entries, None
            for undo in reversed(entries):
                undo()
            logger.debug("Rolled back %d mutation(s)", len(entries))
            raise
        self._entries = None
