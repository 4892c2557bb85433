"""
Player Trade Event Schemas

Trade: an accepted exchange between two players. resource_changes is from
player A's point of view: negative entries are what A gives, positive
entries are what B gives.

TradeOffer: a publicly visible offer. It moves no cards, but the offering
player must hold what they offer, which narrows earlier uncertainty.

Example payload:
{
    "type": "trade",
    "playerA": "Alice",
    "playerB": "Bob",
    "resourceChanges": {"brick": -1, "ore": 1}
}
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator

from ..enums import Resource
from .base import TrackerEvent, coerce_resource_mapping, format_resources, require_non_negative


class Trade(TrackerEvent):
    """Exchange between two players with signed deltas from A's side"""

    type: Literal["trade"] = "trade"
    player_a: str = Field(..., min_length=1, alias="playerA")
    player_b: str = Field(..., min_length=1, alias="playerB")
    resource_changes: dict[Resource, int] = Field(
        default_factory=dict, alias="resourceChanges", description="Signed deltas for player A"
    )

    @field_validator("resource_changes", mode="before")
    @classmethod
    def _normalise_keys(cls, v):
        return coerce_resource_mapping(v)

    @model_validator(mode="after")
    def _distinct_players(self):
        if self.player_a == self.player_b:
            raise ValueError(f"Trade requires two different players, got {self.player_a!r} twice")
        return self

    @property
    def a_gives(self) -> dict[Resource, int]:
        return {r: -a for r, a in self.resource_changes.items() if a < 0}

    @property
    def b_gives(self) -> dict[Resource, int]:
        return {r: a for r, a in self.resource_changes.items() if a > 0}

    def describe(self) -> str:
        return (
            f"{self.player_a} traded with {self.player_b}: "
            f"gave {format_resources(self.a_gives)}, got {format_resources(self.b_gives)}"
        )


class TradeOffer(TrackerEvent):
    """Public offer: the player must currently hold everything offered"""

    type: Literal["trade_offer"] = "trade_offer"
    player: str = Field(..., min_length=1)
    offered_resources: dict[Resource, int] = Field(default_factory=dict, alias="offeredResources")

    @field_validator("offered_resources", mode="before")
    @classmethod
    def _normalise_keys(cls, v):
        return coerce_resource_mapping(v)

    @field_validator("offered_resources")
    @classmethod
    def _unsigned(cls, v):
        return require_non_negative(v)

    def describe(self) -> str:
        return f"{self.player} offered {format_resources(self.offered_resources)}"
