"""
Resource Movement Event Schemas

ResourceGain / ResourceLoss: one player's holdings change by a fully
revealed amount (dice yields, building costs, discards, year of plenty).

BankTrade: signed deltas for one player trading with the bank
(negative = given to the bank, positive = received).

Example payload:
{
    "type": "bank_trade",
    "player": "Alice",
    "resource_changes": {"wheat": -4, "ore": 1}
}
"""

from typing import Literal

from pydantic import Field, field_validator

from ..enums import Resource
from .base import TrackerEvent, coerce_resource_mapping, format_resources, require_non_negative


class ResourceGain(TrackerEvent):
    """Player gains exactly these resources. A gain is never infeasible."""

    type: Literal["resource_gain"] = "resource_gain"
    player: str = Field(..., min_length=1, description="Receiving player")
    resources: dict[Resource, int] = Field(default_factory=dict)

    @field_validator("resources", mode="before")
    @classmethod
    def _normalise_keys(cls, v):
        return coerce_resource_mapping(v)

    @field_validator("resources")
    @classmethod
    def _unsigned(cls, v):
        return require_non_negative(v)

    def describe(self) -> str:
        return f"{self.player} gained {format_resources(self.resources)}"


class ResourceLoss(TrackerEvent):
    """Player loses exactly these resources. Prunes hypotheses that cannot afford it."""

    type: Literal["resource_loss"] = "resource_loss"
    player: str = Field(..., min_length=1, description="Paying player")
    resources: dict[Resource, int] = Field(default_factory=dict)

    @field_validator("resources", mode="before")
    @classmethod
    def _normalise_keys(cls, v):
        return coerce_resource_mapping(v)

    @field_validator("resources")
    @classmethod
    def _unsigned(cls, v):
        return require_non_negative(v)

    def describe(self) -> str:
        return f"{self.player} lost {format_resources(self.resources)}"


class BankTrade(TrackerEvent):
    """Player trades with the bank using signed deltas"""

    type: Literal["bank_trade"] = "bank_trade"
    player: str = Field(..., min_length=1, description="Trading player")
    resource_changes: dict[Resource, int] = Field(
        default_factory=dict, alias="resourceChanges", description="Signed deltas"
    )

    @field_validator("resource_changes", mode="before")
    @classmethod
    def _normalise_keys(cls, v):
        return coerce_resource_mapping(v)

    @property
    def given(self) -> dict[Resource, int]:
        """Resources handed to the bank, as positive amounts"""
        return {r: -a for r, a in self.resource_changes.items() if a < 0}

    @property
    def received(self) -> dict[Resource, int]:
        return {r: a for r, a in self.resource_changes.items() if a > 0}

    def describe(self) -> str:
        return f"{self.player} bank trade: {format_resources(self.resource_changes)}"
