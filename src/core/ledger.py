"""
Ledger Module
Deterministic per-player and game-level counters

The ledger is plain bookkeeping: pieces left, victory points, cards played,
bank and deck counts. Its known_resources are naive counts that ignore
hidden steals and exist for display next to the probabilistic model.
"""

import logging
from dataclasses import dataclass, field
from typing import Any

from config import config
from models import Resource, ResourceVector

logger = logging.getLogger(__name__)

DEV_CARD_KINDS = ("knights", "victory_points", "year_of_plenty", "road_building", "monopoly")


def _starting_pieces(piece: str, default: int) -> int:
    return config.get("game_rules", "starting_pieces", {}).get(piece, default)


@dataclass
class PlayerLedger:
    """Counters for one player"""

    name: str
    settlements: int = field(default_factory=lambda: _starting_pieces("settlements", 5))
    cities: int = field(default_factory=lambda: _starting_pieces("cities", 4))
    roads: int = field(default_factory=lambda: _starting_pieces("roads", 15))
    victory_points: int = 0
    knights_played: int = 0
    dev_cards_played: dict[str, int] = field(default_factory=lambda: dict.fromkeys(DEV_CARD_KINDS, 0))
    robber_moves: int = 0
    card_count: int = 0
    starting_resources: ResourceVector = field(default_factory=ResourceVector)
    known_resources: ResourceVector = field(default_factory=ResourceVector)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "settlements": self.settlements,
            "cities": self.cities,
            "roads": self.roads,
            "victory_points": self.victory_points,
            "knights_played": self.knights_played,
            "dev_cards_played": dict(self.dev_cards_played),
            "robber_moves": self.robber_moves,
            "card_count": self.card_count,
            "starting_resources": self.starting_resources.to_dict(),
            "known_resources": self.known_resources.to_dict(),
        }


class Ledger:
    """
    Game-level bookkeeping for one session

    card_count per player is exact even across hidden steals (one card
    always moves); which card moved is left to the probabilistic model.
    """

    def __init__(self):
        per_kind = config.get("game_rules", "bank_resources_per_kind", 19)
        self.players: dict[str, PlayerLedger] = {}
        self.bank = ResourceVector({resource: per_kind for resource in Resource})
        self.dev_deck: dict[str, int] = dict(config.get("game_rules", "dev_card_deck", {}))
        self.dev_cards_remaining = sum(self.dev_deck.values())
        low, high = config.get("game_rules", "dice_range", (2, 12))
        self.dice_rolls: dict[int, int] = {total: 0 for total in range(low, high + 1)}

    # ========== Players ==========

    def ensure_player(self, name: str) -> PlayerLedger:
        player = self.players.get(name)
        if player is None:
            player = PlayerLedger(name)
            self.players[name] = player
            logger.debug(f"Ledger: added player {name}")
        return player

    def get(self, name: str) -> PlayerLedger | None:
        return self.players.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self.players

    # ========== Resources ==========

    def record_starting_resources(self, name: str, resources: dict[Resource, int]):
        player = self.ensure_player(name)
        player.starting_resources.apply(resources)
        self.record_gain(name, resources)

    def record_gain(self, name: str, resources: dict[Resource, int]):
        """Resources moved from the bank to the player"""
        player = self.ensure_player(name)
        player.known_resources.apply(resources)
        player.card_count += sum(resources.values())
        self.bank.apply(resources, sign=-1)

    def record_loss(self, name: str, resources: dict[Resource, int]):
        """Resources moved from the player back to the bank"""
        player = self.ensure_player(name)
        player.known_resources.apply(resources, sign=-1)
        player.card_count -= sum(resources.values())
        self.bank.apply(resources)

    def record_bank_trade(self, name: str, resource_changes: dict[Resource, int]):
        player = self.ensure_player(name)
        player.known_resources.apply(resource_changes)
        player.card_count += sum(resource_changes.values())
        self.bank.apply(resource_changes, sign=-1)

    def record_trade(self, player_a: str, player_b: str, resource_changes: dict[Resource, int]):
        """Signed changes from player A's side; B receives the opposite"""
        first = self.ensure_player(player_a)
        second = self.ensure_player(player_b)
        first.known_resources.apply(resource_changes)
        second.known_resources.apply(resource_changes, sign=-1)
        net = sum(resource_changes.values())
        first.card_count += net
        second.card_count -= net

    def record_steal(self, thief: str, victim: str, resource: Resource | None = None):
        """One card changes hands; naive counts move only when the card was seen"""
        thief_ledger = self.ensure_player(thief)
        victim_ledger = self.ensure_player(victim)
        thief_ledger.card_count += 1
        victim_ledger.card_count -= 1
        if resource is not None:
            thief_ledger.known_resources.add(resource, 1)
            victim_ledger.known_resources.add(resource, -1)

    def record_monopoly(self, name: str, resource: Resource, total_stolen: int):
        player = self.ensure_player(name)
        for other in self.players.values():
            if other.name == name:
                continue
            held = other.known_resources.get(resource)
            other.known_resources.set(resource, 0)
            other.card_count -= max(held, 0)
        player.known_resources.add(resource, total_stolen)
        player.card_count += total_stolen

    # ========== Pieces and cards ==========

    def place_settlement(self, name: str):
        player = self.ensure_player(name)
        player.settlements -= 1
        player.victory_points += 1

    def place_road(self, name: str):
        self.ensure_player(name).roads -= 1

    def build_city(self, name: str):
        player = self.ensure_player(name)
        player.cities -= 1
        player.settlements += 1
        player.victory_points += 1

    def draw_dev_card(self):
        """Remove one unseen card from the deck; its kind is revealed only when played"""
        self.dev_cards_remaining -= 1

    def play_dev_card(self, name: str, kind: str):
        """dev_deck counts cards of each kind not yet played"""
        player = self.ensure_player(name)
        player.dev_cards_played[kind] = player.dev_cards_played.get(kind, 0) + 1
        self.dev_deck[kind] = self.dev_deck.get(kind, 0) - 1
        if kind == "knights":
            player.knights_played += 1

    def move_robber(self, name: str):
        self.ensure_player(name).robber_moves += 1

    def record_roll(self, total: int):
        self.dice_rolls[total] += 1

    # ========== Export ==========

    def to_dict(self) -> dict[str, Any]:
        return {
            "players": {name: player.to_dict() for name, player in self.players.items()},
            "bank": self.bank.to_dict(),
            "dev_deck": dict(self.dev_deck),
            "dev_cards_remaining": self.dev_cards_remaining,
            "dice_rolls": dict(self.dice_rolls),
        }
