"""
Event Models Module - Pydantic schemas for classified game events

The tracker consumes a closed vocabulary; EVENT_REGISTRY maps each type
string to its schema.
"""

from typing import Any, Union

from pydantic import BaseModel

from ..enums import EventType
from .base import TrackerEvent
from .resource_events import BankTrade, ResourceGain, ResourceLoss
from .robber_events import Monopoly, RobberSteal
from .trade_events import Trade, TradeOffer

GameEvent = Union[ResourceGain, ResourceLoss, BankTrade, Trade, TradeOffer, RobberSteal, Monopoly]

# =============================================================================
# EVENT REGISTRY
# =============================================================================

EVENT_REGISTRY: dict[EventType, type[BaseModel]] = {
    EventType.RESOURCE_GAIN: ResourceGain,
    EventType.RESOURCE_LOSS: ResourceLoss,
    EventType.BANK_TRADE: BankTrade,
    EventType.TRADE: Trade,
    EventType.TRADE_OFFER: TradeOffer,
    EventType.ROBBER_STEAL: RobberSteal,
    EventType.MONOPOLY: Monopoly,
}


def get_schema_for_event(event_type: EventType | str) -> type[BaseModel] | None:
    """Get the schema registered for an event type, or None"""
    try:
        return EVENT_REGISTRY.get(EventType(event_type))
    except ValueError:
        return None


def parse_event(data: dict[str, Any], event_type: EventType | str | None = None) -> GameEvent:
    """
    Validate a raw event dict into its schema.

    Args:
        data: Event payload (must carry "type" unless event_type is given)
        event_type: Explicit type, overriding data["type"]

    Returns:
        Validated event model

    Raises:
        ValueError: If the type is missing or not registered
        pydantic.ValidationError: If the payload does not fit the schema
    """
    name = event_type or data.get("type")
    if not name:
        raise ValueError("Event payload has no 'type'")
    schema = get_schema_for_event(name)
    if schema is None:
        raise ValueError(f"No schema registered for event: {name}")
    payload = {k: v for k, v in data.items() if k != "type"}
    return schema.model_validate(payload)


__all__ = [
    "EVENT_REGISTRY",
    "BankTrade",
    "GameEvent",
    "Monopoly",
    "ResourceGain",
    "ResourceLoss",
    "RobberSteal",
    "Trade",
    "TradeOffer",
    "TrackerEvent",
    "get_schema_for_event",
    "parse_event",
]
