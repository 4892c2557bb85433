"""
Shared base for classified tracker events

Every event arrives already classified by an external parser. The base model
carries the ingestion metadata and the resource-mapping coercion helpers used
by the concrete schemas.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from ..enums import Resource


def coerce_resource_mapping(value: Any) -> Any:
    """Normalise resource keys ("Tree", Resource.TREE, "tree") to Resource members.

    Zero amounts are dropped; they carry no information.
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        return value
    normalised: dict[Resource, Any] = {}
    for key, amount in value.items():
        resource = Resource.parse(key)
        if amount in (0, None):
            continue
        normalised[resource] = normalised.get(resource, 0) + amount
    return normalised


def require_non_negative(value: dict[Resource, int]) -> dict[Resource, int]:
    for resource, amount in value.items():
        if amount < 0:
            raise ValueError(f"Amount for {resource.value} must be non-negative, got {amount}")
    return value


class TrackerEvent(BaseModel):
    """Base for all classified events"""

    # Ingestion metadata (set by the event source, not used by the tracker)
    meta_ts: datetime | None = Field(None, description="Ingestion timestamp (UTC)")
    meta_seq: int | None = Field(None, description="Sequence number within session")
    meta_source: Literal["chat", "replay", "manual"] | None = Field(None, description="Event source")

    class Config:
        populate_by_name = True
        extra = "ignore"
        frozen = True

    def describe(self) -> str:
        """One-line human-readable summary for history dumps"""
        raise NotImplementedError


def format_resources(resources: dict[Resource, int]) -> str:
    if not resources:
        return "nothing"
    return ", ".join(f"{amount:+d} {resource.value}" if amount < 0 else f"{amount} {resource.value}"
                     for resource, amount in resources.items())
