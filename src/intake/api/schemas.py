#*** Begin: src/intake/api/schemas.py ***
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

MESSAGES_UPSERT = "messages.upsert"
GROUP_SUFFIX = "@g.us"
STATUS_BROADCAST = "status@broadcast"


# -----------------------
# Evolution API webhook (MESSAGES_UPSERT)
# -----------------------
class EvolutionKey(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    remote_jid: str = Field(default="", alias="remoteJid")
    from_me: bool = Field(default=False, alias="fromMe")
    id: Optional[str] = None


class ExtendedTextMessage(BaseModel):
    model_config = ConfigDict(extra="ignore")

    text: Optional[str] = None


class EvolutionMessage(BaseModel):
    # media payloads (imageMessage, audioMessage, ...) are ignored
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    conversation: Optional[str] = None
    extended_text: Optional[ExtendedTextMessage] = Field(default=None, alias="extendedTextMessage")


class EvolutionData(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    key: EvolutionKey = Field(default_factory=EvolutionKey)
    push_name: Optional[str] = Field(default=None, alias="pushName")
    message: Optional[EvolutionMessage] = None
    message_type: Optional[str] = Field(default=None, alias="messageType")


class EvolutionWebhookPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: str = ""
    instance: Optional[str] = None
    data: Optional[EvolutionData] = None

    def should_process(self) -> bool:
        """Only inbound one-to-one message upserts reach the dialogue."""
        if self.event != MESSAGES_UPSERT or self.data is None:
            return False
        key = self.data.key
        if key.from_me:
            return False
        if GROUP_SUFFIX in key.remote_jid or key.remote_jid == STATUS_BROADCAST:
            return False
        return bool(key.remote_jid)

    def text(self) -> Optional[str]:
        message = self.data.message if self.data else None
        if message is None:
            return None
        if message.conversation:
            return message.conversation
        if message.extended_text and message.extended_text.text:
            return message.extended_text.text
        return None

    def sender(self) -> str:
        # "5569999089202@s.whatsapp.net" -> "5569999089202"
        return self.data.key.remote_jid.split("@")[0] if self.data else ""

    def message_id(self) -> Optional[str]:
        return self.data.key.id if self.data else None


class WebhookAck(BaseModel):
    status: str = "ok"
#*** End: src/intake/api/schemas.py ***
