"""Intake Domain Ports"""
from src.intake.domain.protocols.delivery_ledger import DeliveryLedger
from src.intake.domain.protocols.keyed_lock import KeyedLock
from src.intake.domain.protocols.messaging_gateway import MessagingGateway

__all__ = ["DeliveryLedger", "KeyedLock", "MessagingGateway"]
