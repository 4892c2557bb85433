"""
Enumerations for resources, transaction statuses and event types
"""

from enum import Enum


class Resource(str, Enum):
    """The five resource card kinds"""

    TREE = "tree"
    BRICK = "brick"
    SHEEP = "sheep"
    WHEAT = "wheat"
    ORE = "ore"

    @classmethod
    def parse(cls, value) -> "Resource":
        """Coerce a member or its string value into a Resource.

        Raises:
            ValueError: If value does not name one of the five kinds
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown resource type: {value!r}")


# Fixed iteration order used for vectors, keys and display
RESOURCE_TYPES: tuple[Resource, ...] = tuple(Resource)


class TransactionStatus(str, Enum):
    """Ambiguous transaction lifecycle status"""

    OPEN = "open"
    RESOLVED = "resolved"
    UNKNOWABLE = "unknowable"  # pruned past without a surviving witness


class EventType(str, Enum):
    """Classified event vocabulary accepted by the tracker"""

    RESOURCE_GAIN = "resource_gain"
    RESOURCE_LOSS = "resource_loss"
    BANK_TRADE = "bank_trade"
    TRADE = "trade"
    TRADE_OFFER = "trade_offer"
    ROBBER_STEAL = "robber_steal"
    MONOPOLY = "monopoly"
