"""
Data models for the resource tracker
"""

from .ambiguous_transaction import AmbiguousTransaction
from .enums import RESOURCE_TYPES, EventType, Resource, TransactionStatus
from .events import (
    EVENT_REGISTRY,
    BankTrade,
    GameEvent,
    Monopoly,
    ResourceGain,
    ResourceLoss,
    RobberSteal,
    Trade,
    TradeOffer,
    TrackerEvent,
    get_schema_for_event,
    parse_event,
)
from .resources import GameState, PlayerState, ResourceVector

__all__ = [
    "Resource",
    "RESOURCE_TYPES",
    "EventType",
    "TransactionStatus",
    "ResourceVector",
    "PlayerState",
    "GameState",
    "AmbiguousTransaction",
    # Classified events
    "TrackerEvent",
    "GameEvent",
    "ResourceGain",
    "ResourceLoss",
    "BankTrade",
    "Trade",
    "TradeOffer",
    "RobberSteal",
    "Monopoly",
    "EVENT_REGISTRY",
    "get_schema_for_event",
    "parse_event",
]
