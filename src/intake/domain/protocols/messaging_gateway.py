"""
Outbound Messaging Port
Contract for sending WhatsApp text replies
"""
from __future__ import annotations

from typing import Protocol


class MessagingGateway(Protocol):
    """
    Sends text replies to an identity.

    Implementations report delivery problems through the return value; they
    only raise for programming errors.
    """

    async def send(self, identity: str, text: str) -> bool:
        """
        Send a text message.

        Args:
            identity: Normalized phone number (digits only, with country code)
            text: Message body

        Returns:
            True if the provider accepted the message, False otherwise
        """
        ...
