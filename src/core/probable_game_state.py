"""
Probable Game State Module
Session façade over the variant tree and the transaction processor

One instance per game session. Events go in through process_transaction();
aggregate queries (holding ranges, uncertainty, per-steal odds) come out for
the presentation layer.
"""

import logging
import threading
from collections import deque
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from config import config
from models import (
    RESOURCE_TYPES,
    AmbiguousTransaction,
    BankTrade,
    GameEvent,
    GameState,
    Monopoly,
    Resource,
    ResourceGain,
    ResourceLoss,
    RobberSteal,
    Trade,
    TradeOffer,
    TransactionStatus,
    parse_event,
)

from .transaction_processor import TransactionProcessor
from .variant_tree import VariantTree

logger = logging.getLogger(__name__)


@dataclass
class ProcessOutcome:
    """What one processed event did to the hypothesis set"""

    event: GameEvent
    opened: str | None = None
    resolved: list[AmbiguousTransaction] = field(default_factory=list)
    variant_count: int = 0
    exhausted: bool = False


class ProbableGameState:
    """
    Probabilistic model of every player's hidden hand

    Each call to process_transaction() is atomic: branching, pruning and the
    auto-resolution pass complete under the session lock before the next
    event is accepted.
    """

    def __init__(self, players: Mapping[str, Mapping[Any, int]]):
        initial_state = GameState.from_resources(players)
        self.tree = VariantTree(initial_state)
        self.processor = TransactionProcessor(self.tree)

        max_history = config.get("tracker", "max_event_history", 0)
        self._history: deque[GameEvent] = deque(maxlen=max_history or None)
        self._lock = threading.RLock()

        self._handlers = {
            ResourceGain: self._handle_resource_gain,
            ResourceLoss: self._handle_resource_loss,
            BankTrade: self._handle_bank_trade,
            Trade: self._handle_trade,
            TradeOffer: self._handle_trade_offer,
            RobberSteal: self._handle_robber_steal,
            Monopoly: self._handle_monopoly,
        }

        logger.info(f"ProbableGameState initialized for players: {', '.join(initial_state.players())}")

    @property
    def players(self) -> list[str]:
        return self.tree.root.game_state.players()

    @property
    def is_empty(self) -> bool:
        return self.tree.is_empty

    # ========== Event Processing ==========

    def process_transaction(self, event: GameEvent | dict[str, Any]) -> ProcessOutcome:
        """
        Apply one classified event, then run auto-resolution

        Args:
            event: A validated event model, or a raw dict carrying "type"

        Returns:
            ProcessOutcome describing the effect on the hypothesis set

        Raises:
            ValueError: Unknown event type
            pydantic.ValidationError: Malformed raw payload
        """
        if isinstance(event, dict):
            event = parse_event(event)

        handler = self._handlers.get(type(event))
        if handler is None:
            raise ValueError(f"Unsupported event: {type(event).__name__}")

        with self._lock:
            was_empty = self.tree.is_empty
            opened = handler(event)
            resolved = self.processor.resolve_all()
            self._history.append(event)

            outcome = ProcessOutcome(
                event=event,
                opened=opened,
                resolved=resolved,
                variant_count=self.get_variant_count(),
                exhausted=self.tree.is_empty and not was_empty,
            )

        logger.debug(f"Processed {event.describe()} -> {outcome.variant_count} variant(s)")
        return outcome

    def _handle_resource_gain(self, event: ResourceGain):
        self.processor.process_resource_gain(event.player, event.resources)

    def _handle_resource_loss(self, event: ResourceLoss):
        self.processor.process_resource_loss(event.player, event.resources)

    def _handle_bank_trade(self, event: BankTrade):
        self.processor.process_bank_trade(event.player, event.resource_changes)

    def _handle_trade(self, event: Trade):
        self.processor.process_trade(event.player_a, event.player_b, event.resource_changes)

    def _handle_trade_offer(self, event: TradeOffer):
        self.processor.process_trade_offer(event.player, event.offered_resources)

    def _handle_robber_steal(self, event: RobberSteal) -> str | None:
        if event.is_hidden:
            return self.processor.process_unknown_steal(event.thief, event.victim)
        self.processor.process_known_steal(event.thief, event.victim, event.resource)
        return None

    def _handle_monopoly(self, event: Monopoly):
        self.processor.process_monopoly(event.player, event.resource_type, event.total_stolen)

    # ========== Transactions ==========

    def get_unknown_transactions(self) -> list[AmbiguousTransaction]:
        """Transactions still open, oldest first"""
        with self._lock:
            return self.processor.get_unresolved_transactions()

    def get_unknown_transaction(self, transaction_id: str) -> AmbiguousTransaction | None:
        with self._lock:
            return self.processor.get_transaction(transaction_id)

    def get_all_transactions(self) -> list[AmbiguousTransaction]:
        with self._lock:
            return self.processor.get_transactions()

    def resolve_unknown_transaction(self, transaction_id: str, resource: Resource | str) -> bool:
        """
        Resolve a steal from outside knowledge

        Returns:
            True if accepted; False for an unknown id or a resource no
            remaining variant supports
        """
        with self._lock:
            accepted = self.processor.resolve(transaction_id, resource)
            if accepted:
                self.processor.resolve_all()
            return accepted

    def get_transaction_resource_probabilities(self, transaction_id: str) -> dict[Resource, float] | None:
        with self._lock:
            return self.processor.get_transaction_resource_probabilities(transaction_id)

    # ========== Aggregates ==========

    def get_player_resources(self, player_name: str) -> dict[Resource, dict[str, Any]]:
        """
        Per-resource summary for one player across all variants

        Returns:
            {resource: {"min", "max", "most_likely", "confidence"}}; zeros
            when no variant survives or the player is unknown
        """
        with self._lock:
            probabilities, counts = self._player_matrix(player_name)

        summary = {}
        for column, resource in enumerate(RESOURCE_TYPES):
            if probabilities.size == 0:
                summary[resource] = {"min": 0, "max": 0, "most_likely": 0, "confidence": 0.0}
                continue
            values = counts[:, column]
            most_likely = int(values[0])
            summary[resource] = {
                "min": int(values.min()),
                "max": int(values.max()),
                "most_likely": most_likely,
                "confidence": float(probabilities[values == most_likely].sum()),
            }
        return summary

    def get_player_resource_probabilities(self, player_name: str) -> dict[str, dict[Resource, Any]]:
        """
        Guaranteed floor per resource plus the chance of holding more

        Returns:
            {"minimum_resources": {resource: int},
             "additional_resource_probabilities": {resource: float}}
        """
        with self._lock:
            probabilities, counts = self._player_matrix(player_name)

        if probabilities.size == 0:
            return {
                "minimum_resources": {resource: 0 for resource in RESOURCE_TYPES},
                "additional_resource_probabilities": {resource: 0.0 for resource in RESOURCE_TYPES},
            }

        floor = counts.min(axis=0)
        above = probabilities @ (counts > floor).astype(float)
        return {
            "minimum_resources": {r: int(floor[i]) for i, r in enumerate(RESOURCE_TYPES)},
            "additional_resource_probabilities": {
                r: float(min(1.0, above[i])) for i, r in enumerate(RESOURCE_TYPES)
            },
        }

    def get_most_likely_game_state(self) -> tuple[GameState | None, float]:
        """Highest-probability variant and its probability, or (None, 0.0)"""
        with self._lock:
            variants = self.tree.current_variants()
            if not variants:
                return None, 0.0
            return variants[0].game_state.clone(), variants[0].probability

    def get_all_possible_game_states(self) -> list[tuple[GameState, float]]:
        with self._lock:
            return [(v.game_state.clone(), v.probability) for v in self.tree.current_variants()]

    def get_variant_count(self) -> int:
        """Distinct hypotheses after merging identical leaves"""
        with self._lock:
            return len(self.tree.current_variants())

    def get_leaf_count(self) -> int:
        """Raw leaf nodes, before merging"""
        with self._lock:
            return self.tree.leaf_count

    def get_uncertainty_score(self) -> float:
        """Normalized Shannon entropy of the variant distribution, in [0, 1]"""
        with self._lock:
            probabilities = np.array([v.probability for v in self.tree.current_variants()])

        if probabilities.size <= 1:
            return 0.0
        positive = probabilities[probabilities > 0]
        entropy = -np.sum(positive * np.log2(positive))
        return float(np.clip(entropy / np.log2(probabilities.size), 0.0, 1.0))

    def _player_matrix(self, player_name: str) -> tuple[np.ndarray, np.ndarray]:
        """(probabilities, counts) for variants containing the player, most likely first"""
        rows = []
        weights = []
        for variant in self.tree.current_variants():
            player = variant.game_state.get(player_name)
            if player is None:
                continue
            rows.append(player.resources.key())
            weights.append(variant.probability)
        if not rows:
            return np.zeros(0), np.zeros((0, len(RESOURCE_TYPES)), dtype=int)
        return np.array(weights), np.array(rows, dtype=int)

    # ========== History ==========

    def get_transaction_history(self, limit: int | None = None) -> list[GameEvent]:
        with self._lock:
            history = list(self._history)
            if limit:
                return history[-limit:]
            return history

    def get_transaction_count(self) -> int:
        with self._lock:
            return len(self._history)

    def clear_transaction_history(self):
        """Drop the audit history; the hypothesis set is untouched"""
        with self._lock:
            self._history.clear()
        logger.info("Transaction history cleared")

    # ========== Debugging ==========

    def debug_variants(self) -> list[str]:
        """Log and return one line per merged variant"""
        with self._lock:
            variants = self.tree.current_variants()
            lines = [f"{len(variants)} variant(s), uncertainty {self.get_uncertainty_score():.3f}"]
            for index, variant in enumerate(variants, start=1):
                holdings = "; ".join(
                    f"{name}: {_format_holdings(variant.game_state[name].resources.to_dict())}"
                    for name in variant.game_state
                )
                lines.append(f"  {index}. p={variant.probability:.4f} {holdings}")
        for line in lines:
            logger.info(line)
        return lines

    def debug_transaction_history(self) -> list[str]:
        """Log and return the event history and transaction registry"""
        with self._lock:
            lines = [f"{len(self._history)} event(s) processed"]
            lines.extend(f"  {i}. {event.describe()}" for i, event in enumerate(self._history, start=1))
            for transaction in self.processor.get_transactions():
                if transaction.status == TransactionStatus.RESOLVED:
                    state = f"resolved to {transaction.resolved_resource.value}"
                else:
                    state = transaction.status.value
                lines.append(f"  {transaction.id}: {transaction.thief} <- {transaction.victim}, {state}")
        for line in lines:
            logger.info(line)
        return lines

    def to_dict(self) -> dict[str, Any]:
        """Snapshot of the session for debugging"""
        with self._lock:
            return {
                "players": self.players,
                "is_empty": self.tree.is_empty,
                "variant_count": self.get_variant_count(),
                "leaf_count": self.tree.leaf_count,
                "uncertainty": self.get_uncertainty_score(),
                "variants": [
                    {"probability": v.probability, "state": v.game_state.to_dict()}
                    for v in self.tree.current_variants()
                ],
                "transactions": [t.to_dict() for t in self.processor.get_transactions()],
                "history_length": len(self._history),
            }


def _format_holdings(counts: dict[str, int]) -> str:
    held = [f"{name}={count}" for name, count in counts.items() if count]
    return ",".join(held) if held else "-"
