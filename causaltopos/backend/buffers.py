"""Scoped numeric scratch buffers.

Refinement stacks node embeddings into temporary batch arrays. They are
allocated from a :class:`BufferPool` inside a ``with pool.scope():`` block
and every reference held by the pool is dropped when the block exits, so
repeated refinements do not accumulate memory. Results that must outlive the
scope are copied out with :meth:`BufferPool.export`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Sequence

import numpy as np

logger = logging.getLogger(__name__)


class BufferPool:
    """Track transient arrays and release them per scope."""

    def __init__(self, dtype: np.dtype | type = np.float64) -> None:
        self.dtype = np.dtype(dtype)
        self._scopes: List[List[np.ndarray]] = []
        self.peak_bytes = 0

    @property
    def live_buffers(self) -> int:
        """Number of buffers held by currently open scopes."""
        return sum(len(s) for s in self._scopes)

    @property
    def live_bytes(self) -> int:
        return sum(b.nbytes for s in self._scopes for b in s)

    @contextmanager
    def scope(self) -> Iterator["BufferPool"]:
        """Open a scope; buffers allocated inside are released on exit."""
        self._scopes.append([])
        try:
            yield self
        finally:
            released = self._scopes.pop()
            logger.debug(
                "released %d scratch buffers (%d bytes)",
                len(released),
                sum(b.nbytes for b in released),
            )
            released.clear()

    def zeros(self, shape: int | Sequence[int]) -> np.ndarray:
        return self._track(np.zeros(shape, dtype=self.dtype))

    def stack(self, rows: Sequence[np.ndarray]) -> np.ndarray:
        """Return ``rows`` stacked into a new scoped array."""
        return self._track(np.stack(rows).astype(self.dtype, copy=False))

    def track(self, array: np.ndarray) -> np.ndarray:
        """Register an array created elsewhere with the current scope."""
        return self._track(array)

    @staticmethod
    def export(array: np.ndarray) -> np.ndarray:
        """Return a copy of ``array`` that is not owned by any scope."""
        return np.array(array, copy=True)

    def _track(self, array: np.ndarray) -> np.ndarray:
        if not self._scopes:
            raise RuntimeError("scratch buffers must be allocated inside pool.scope()")
        self._scopes[-1].append(array)
        self.peak_bytes = max(self.peak_bytes, self.live_bytes)
        return array
