"""
Ambiguous transaction data model
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from .enums import Resource, TransactionStatus


@dataclass
class AmbiguousTransaction:
    """
    A hidden steal whose outcome could not be determined when it occurred

    Attributes:
        id: Session-unique transaction id (tags the branches it produced)
        sequence: Creation order within the session
        thief: Player who received the unseen card
        victim: Player who lost the unseen card
        possible_resources: Prior probability per resource, pooled across leaves
        created_at: UTC creation timestamp
        status: OPEN until resolved or found unknowable
        resolved_resource: Resource determined for the steal, if any
    """

    id: str
    sequence: int
    thief: str
    victim: str
    possible_resources: dict[Resource, float] = field(default_factory=dict)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: TransactionStatus = TransactionStatus.OPEN
    resolved_resource: Resource | None = None

    @property
    def is_resolved(self) -> bool:
        return self.status != TransactionStatus.OPEN

    @property
    def is_unknowable(self) -> bool:
        return self.status == TransactionStatus.UNKNOWABLE

    @property
    def participants(self) -> tuple[str, str]:
        return (self.thief, self.victim)

    def resolve(self, resource: Resource):
        """Mark resolved with the determined resource"""
        self.status = TransactionStatus.RESOLVED
        self.resolved_resource = Resource.parse(resource)

    def mark_unknowable(self):
        """Mark resolved without a resource: no surviving leaf still witnesses it"""
        self.status = TransactionStatus.UNKNOWABLE
        self.resolved_resource = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sequence": self.sequence,
            "thief": self.thief,
            "victim": self.victim,
            "possible_resources": {r.value: p for r, p in self.possible_resources.items()},
            "created_at": self.created_at.isoformat(),
            "status": self.status.value,
            "resolved_resource": self.resolved_resource.value if self.resolved_resource else None,
        }
