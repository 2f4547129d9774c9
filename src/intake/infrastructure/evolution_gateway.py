"""Evolution API adapter (WhatsApp via Baileys) for outbound text and instance status."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from src.intake.domain.errors import GatewayError
from src.shared.logging import get_logger

logger = get_logger(__name__)


class EvolutionGateway:
    """MessagingGateway implementation on the Evolution API REST interface."""

    def __init__(
        self,
        *,
        base_url: str,
        api_key: str,
        instance_name: str,
        send_delay_ms: int = 1200,
        timeout: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.instance_name = instance_name
        self.send_delay_ms = send_delay_ms
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._headers = {"apikey": api_key, "Content-Type": "application/json"}

    async def send(self, identity: str, text: str) -> bool:
        """Send a text message; False on any provider or transport failure."""
        url = f"{self.base_url}/message/sendText/{self.instance_name}"
        payload = {"number": identity, "text": text, "delay": self.send_delay_ms}
        try:
            response = await self.client.post(url, headers=self._headers, json=payload)
        except httpx.TimeoutException:
            logger.error("evolution_send_timeout", number=identity)
            return False
        except httpx.HTTPError as e:
            logger.error("evolution_send_error", number=identity, error=str(e))
            return False

        if response.is_success:
            logger.debug("evolution_message_sent", number=identity)
            return True
        logger.error(
            "evolution_send_rejected",
            number=identity,
            status_code=response.status_code,
            body=response.text[:500],
        )
        return False

    async def connection_state(self) -> Dict[str, Any]:
        """Instance connection state as reported by Evolution (`instance.state` is e.g. "open")."""
        url = f"{self.base_url}/instance/connectionState/{self.instance_name}"
        try:
            response = await self.client.get(url, headers=self._headers)
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise GatewayError(f"evolution status unavailable: {e}") from e

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
