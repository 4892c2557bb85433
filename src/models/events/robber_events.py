"""
Robber and Monopoly Event Schemas

RobberSteal: resource is set when the stolen card was visible to the
observer (the observer was thief or victim); None triggers branching.

Monopoly: the public total taken is exact information and can
retroactively disambiguate earlier hidden steals.
"""

from typing import Literal

from pydantic import Field, field_validator, model_validator

from ..enums import Resource
from .base import TrackerEvent


class RobberSteal(TrackerEvent):
    """One card moves from victim to thief; the card may be hidden"""

    type: Literal["robber_steal"] = "robber_steal"
    thief: str = Field(..., min_length=1)
    victim: str = Field(..., min_length=1)
    resource: Resource | None = Field(None, description="Stolen resource, None if unseen")

    @field_validator("resource", mode="before")
    @classmethod
    def _parse_resource(cls, v):
        if v is None or v == "":
            return None
        return Resource.parse(v)

    @model_validator(mode="after")
    def _distinct_players(self):
        if self.thief == self.victim:
            raise ValueError(f"{self.thief!r} cannot steal from themselves")
        return self

    @property
    def is_hidden(self) -> bool:
        return self.resource is None

    def describe(self) -> str:
        stolen = self.resource.value if self.resource else "unknown resource"
        return f"{self.thief} stole from {self.victim} ({stolen})"


class Monopoly(TrackerEvent):
    """Player takes every card of one kind from all other players"""

    type: Literal["monopoly"] = "monopoly"
    player: str = Field(..., min_length=1)
    resource_type: Resource = Field(..., alias="resourceType")
    total_stolen: int = Field(..., ge=0, alias="totalStolen")

    @field_validator("resource_type", mode="before")
    @classmethod
    def _parse_resource(cls, v):
        return Resource.parse(v)

    def describe(self) -> str:
        return (
            f"{self.player} played monopoly on {self.resource_type.value}, "
            f"took {self.total_stolen} total"
        )
