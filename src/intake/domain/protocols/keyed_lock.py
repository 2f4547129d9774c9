"""
Per-identity mutual exclusion
"""
from __future__ import annotations

from typing import AsyncContextManager, Protocol


class KeyedLock(Protocol):
    """
    Serialises work per key; different keys never contend.
    """

    def hold(self, key: str) -> AsyncContextManager[None]:
        """
        Acquire the lock for `key` for the duration of an `async with` block.

        Raises:
            LockTimeoutError: when the lock could not be acquired in time
        """
        ...
