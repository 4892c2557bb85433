"""
Resource vectors and game state snapshots

A GameState is one complete hypothesis of every player's holdings. Snapshots
are cloned whenever a hypothesis branches, so siblings never share vectors.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from .enums import RESOURCE_TYPES, Resource


class ResourceVector:
    """
    Counts for the five resource kinds

    Counts are plain ints. A vector may go negative transiently while a
    delta is being evaluated, but committed leaf states are kept >= 0 by
    the tracker's pruning.
    """

    __slots__ = ("_counts",)

    def __init__(self, counts: Mapping[Any, int] | None = None):
        self._counts: dict[Resource, int] = {resource: 0 for resource in RESOURCE_TYPES}
        if counts:
            for key, amount in counts.items():
                self._counts[Resource.parse(key)] = int(amount)

    @classmethod
    def from_mapping(cls, mapping: Mapping[Any, int] | None) -> "ResourceVector":
        """Build a vector from a partial mapping; missing kinds are 0"""
        if isinstance(mapping, ResourceVector):
            return mapping.copy()
        return cls(mapping)

    def get(self, resource: Resource | str) -> int:
        return self._counts[Resource.parse(resource)]

    def set(self, resource: Resource | str, amount: int):
        self._counts[Resource.parse(resource)] = int(amount)

    def add(self, resource: Resource | str, amount: int):
        self._counts[Resource.parse(resource)] += int(amount)

    def apply(self, deltas: Mapping[Any, int], sign: int = 1):
        """Add every delta (multiplied by sign) to this vector"""
        for key, amount in deltas.items():
            if amount:
                self._counts[Resource.parse(key)] += int(amount) * sign

    def can_afford(self, amounts: Mapping[Any, int]) -> bool:
        """True if every positive amount is covered by the current count"""
        for key, amount in amounts.items():
            if amount and amount > 0 and self._counts[Resource.parse(key)] < amount:
                return False
        return True

    def total(self) -> int:
        return sum(self._counts.values())

    def held(self) -> list[Resource]:
        """Resources with a count above zero, in fixed order"""
        return [resource for resource in RESOURCE_TYPES if self._counts[resource] > 0]

    def has_negative(self) -> bool:
        return any(count < 0 for count in self._counts.values())

    def copy(self) -> "ResourceVector":
        clone = ResourceVector()
        clone._counts = dict(self._counts)
        return clone

    def key(self) -> tuple[int, ...]:
        return tuple(self._counts[resource] for resource in RESOURCE_TYPES)

    def to_dict(self) -> dict[str, int]:
        return {resource.value: self._counts[resource] for resource in RESOURCE_TYPES}

    def items(self) -> Iterator[tuple[Resource, int]]:
        return iter((resource, self._counts[resource]) for resource in RESOURCE_TYPES)

    def __getitem__(self, resource: Resource | str) -> int:
        return self.get(resource)

    def __eq__(self, other) -> bool:
        if isinstance(other, ResourceVector):
            return self._counts == other._counts
        if isinstance(other, Mapping):
            try:
                return self == ResourceVector(other)
            except ValueError:
                return False
        return NotImplemented

    def __hash__(self):
        return hash(self.key())

    def __repr__(self) -> str:
        held = ", ".join(f"{r.value}={c}" for r, c in self.items() if c)
        return f"ResourceVector({held})"


@dataclass
class PlayerState:
    """One player's holdings inside a single hypothesis"""

    name: str
    resources: ResourceVector = field(default_factory=ResourceVector)

    def copy(self) -> "PlayerState":
        return PlayerState(self.name, self.resources.copy())


class GameState:
    """
    Mapping of player name to PlayerState

    Structural identity (key()) ignores insertion order so that two leaves
    holding identical counts for every player merge.
    """

    def __init__(self, players: Iterable[PlayerState] = ()):
        self._players: dict[str, PlayerState] = {}
        for player in players:
            self._players[player.name] = player

    @classmethod
    def from_resources(cls, holdings: Mapping[str, Mapping[Any, int]]) -> "GameState":
        """Build a snapshot from {player_name: {resource: count}}"""
        return cls(
            PlayerState(name, ResourceVector.from_mapping(resources))
            for name, resources in holdings.items()
        )

    def get(self, name: str) -> PlayerState | None:
        return self._players.get(name)

    def players(self) -> list[str]:
        return list(self._players)

    def clone(self) -> "GameState":
        return GameState(player.copy() for player in self._players.values())

    def has_negative(self) -> bool:
        return any(player.resources.has_negative() for player in self._players.values())

    def key(self) -> tuple:
        return tuple(
            (name, self._players[name].resources.key()) for name in sorted(self._players)
        )

    def to_dict(self) -> dict[str, dict[str, int]]:
        return {name: player.resources.to_dict() for name, player in self._players.items()}

    def __contains__(self, name: str) -> bool:
        return name in self._players

    def __getitem__(self, name: str) -> PlayerState:
        return self._players[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._players)

    def __len__(self) -> int:
        return len(self._players)

    def __eq__(self, other) -> bool:
        if not isinstance(other, GameState):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self):
        return hash(self.key())

    def __repr__(self) -> str:
        return f"GameState({self.to_dict()})"
