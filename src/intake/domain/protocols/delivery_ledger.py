"""
Inbound delivery deduplication
"""
from __future__ import annotations

from typing import Protocol


class DeliveryLedger(Protocol):
    """Remembers provider message ids for a bounded time."""

    async def mark(self, message_id: str) -> bool:
        """
        Record a message id.

        Args:
            message_id: Provider-assigned id of the inbound message

        Returns:
            True the first time an id is seen, False for a duplicate
        """
        ...
