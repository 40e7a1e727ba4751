# src/clinic_workflow/tasks/identity.py

from __future__ import annotations

import logging

from ..core.ports import IdSource
from .task_errors import IdentityExhausted

logger = logging.getLogger(__name__)

MAX_TASK_ID = 2**31 - 1


class IdentityAllocator:
    """
    Hands out strictly increasing task ids.

    The counter is seeded lazily from the largest id already in the Basic store
    (0 for an empty store) the first time `next_id()` is called.

    Not thread-safe on its own: the lifecycle controller calls it under the
    same lock that guards the row inserts, so allocation and insertion look
    atomic to other requests. A single running instance per database pair is
    assumed.
    """

    def __init__(self, source: IdSource) -> None:
        self._source = source
        self._last: int | None = None

    @property
    def last_issued(self) -> int | None:
        return self._last

    def _seed(self) -> int:
        current = self._source.max_id()
        # An empty store has no maximum; that is expected on first startup.
        seed = 0 if current is None else int(current)
        logger.info("IdentityAllocator seeded at %s", seed)
        return seed

    def next_id(self) -> int:
        if self._last is None:
            self._last = self._seed()
        if self._last >= MAX_TASK_ID:
            raise IdentityExhausted(f"task id space exhausted at {self._last}")
        self._last += 1
        return self._last
