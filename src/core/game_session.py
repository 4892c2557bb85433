"""
Game Session Module
Explicit per-game session object with observer pattern for reactive updates

A GameSession owns one Ledger and, once the first resource event arrives,
one ProbableGameState. High-level game actions are translated into
classified events plus ledger bookkeeping.
"""

import logging
import threading
from collections import defaultdict
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from config import config
from models import (
    BankTrade,
    GameEvent,
    Monopoly,
    Resource,
    ResourceGain,
    ResourceLoss,
    RobberSteal,
    Trade,
    TradeOffer,
    parse_event,
)

from .ledger import Ledger
from .probable_game_state import ProbableGameState
from .validators import (
    require_valid,
    validate_dev_card_available,
    validate_dice_total,
    validate_pieces_available,
    validate_player_known,
    validate_player_name,
    validate_resource_amounts,
)

logger = logging.getLogger(__name__)


class SessionEvents(Enum):
    """Events emitted by a game session"""

    TRACKER_STARTED = "tracker_started"
    EVENT_PROCESSED = "event_processed"
    TRANSACTION_OPENED = "transaction_opened"
    TRANSACTION_RESOLVED = "transaction_resolved"
    VARIANTS_EXHAUSTED = "variants_exhausted"
    SESSION_RESET = "session_reset"


class GameSession:
    """
    One game being tracked

    Responsibilities:
    - Register players and the local player
    - Validate and translate game actions into tracker events
    - Keep deterministic counters in the ledger
    - Notify observers after each change
    """

    def __init__(self, players: list[str] | None = None):
        self._lock = threading.RLock()
        self._observers: dict[SessionEvents, list[Callable]] = defaultdict(list)
        self.local_player: str | None = None
        self.ledger = Ledger()
        self.tracker: ProbableGameState | None = None

        for name in players or []:
            self.ensure_player(name)

        logger.info(f"GameSession initialized with {len(self.ledger.players)} player(s)")

    @property
    def players(self) -> list[str]:
        return list(self.ledger.players)

    @property
    def tracker_started(self) -> bool:
        return self.tracker is not None

    # ========== Lifecycle ==========

    def reset(self):
        """Start a fresh game; the local player and subscriptions are kept"""
        with self._lock:
            self.ledger = Ledger()
            self.tracker = None
        logger.info("Game session reset")
        self._emit(SessionEvents.SESSION_RESET, self.local_player)

    def set_local_player(self, name: str):
        """
        Record which player is the observer

        Raises:
            ValidationError: If name is empty
        """
        require_valid(validate_player_name(name))
        with self._lock:
            self.local_player = name
        logger.info(f"Local player set to {name}")

    def ensure_player(self, name: str) -> dict[str, Any]:
        is_valid, error = validate_player_name(name)
        if not is_valid:
            return self._error_result(error, "ADD_PLAYER")
        with self._lock:
            if self.tracker is not None and name not in self.tracker.players:
                logger.warning(f"{name} joined after tracking started; not part of the tracked state")
            self.ledger.ensure_player(name)
        return self._success_result("ADD_PLAYER", player=name)

    def _ensure_tracker(self) -> bool:
        """Seed the tracker from the ledger on first use. Returns True if it was created."""
        if self.tracker is not None:
            return False
        seed = {name: player.known_resources.to_dict() for name, player in self.ledger.players.items()}
        self.tracker = ProbableGameState(seed)
        logger.info(f"Tracker started for {len(seed)} player(s)")
        return True

    # ========== Event Processing ==========

    def process(self, event: GameEvent | dict[str, Any], action: str = "PROCESS") -> dict[str, Any]:
        """
        Feed one classified event through the ledger and the tracker

        Args:
            event: Event model or raw dict carrying "type"
            action: Action name reported in the result

        Returns:
            Result dictionary with success, reason, and tracker summary
        """
        if isinstance(event, dict):
            try:
                event = parse_event(event)
            except ValueError as e:
                return self._error_result(f"Invalid event: {e}", action)

        with self._lock:
            started = self._ensure_tracker()
            self._record(event)
            outcome = self.tracker.process_transaction(event)

        if started:
            self._emit(SessionEvents.TRACKER_STARTED, self.tracker)
        self._emit(SessionEvents.EVENT_PROCESSED, outcome)
        if outcome.opened:
            self._emit(SessionEvents.TRANSACTION_OPENED, self.tracker.get_unknown_transaction(outcome.opened))
        for transaction in outcome.resolved:
            self._emit(SessionEvents.TRANSACTION_RESOLVED, transaction)
        if outcome.exhausted:
            logger.warning(f"No hypothesis survives after: {event.describe()}")
            self._emit(SessionEvents.VARIANTS_EXHAUSTED, event)

        return self._success_result(
            action,
            event=event.type,
            transaction_id=outcome.opened,
            resolved=[t.id for t in outcome.resolved],
            exhausted=outcome.exhausted,
        )

    def _record(self, event: GameEvent):
        if isinstance(event, ResourceGain):
            self.ledger.record_gain(event.player, event.resources)
        elif isinstance(event, ResourceLoss):
            self.ledger.record_loss(event.player, event.resources)
        elif isinstance(event, BankTrade):
            self.ledger.record_bank_trade(event.player, event.resource_changes)
        elif isinstance(event, Trade):
            self.ledger.record_trade(event.player_a, event.player_b, event.resource_changes)
        elif isinstance(event, RobberSteal):
            self.ledger.record_steal(event.thief, event.victim, event.resource)
        elif isinstance(event, Monopoly):
            self.ledger.record_monopoly(event.player, event.resource_type, event.total_stolen)

    def _submit(self, action: str, schema: type, **fields) -> dict[str, Any]:
        try:
            event = schema(**fields)
        except ValueError as e:
            return self._error_result(str(e), action)
        return self.process(event, action)

    # ========== Setup ==========

    def place_settlement(self, name: str) -> dict[str, Any]:
        """Free initial settlement; registers the player"""
        result = self.ensure_player(name)
        if not result["success"]:
            return self._error_result(result["reason"], "PLACE_SETTLEMENT")
        is_valid, error = validate_pieces_available(self.ledger, name, "settlements")
        if not is_valid:
            return self._error_result(error, "PLACE_SETTLEMENT")
        self.ledger.place_settlement(name)
        logger.debug(f"{name} placed a settlement")
        return self._success_result("PLACE_SETTLEMENT", player=name)

    def place_road(self, name: str) -> dict[str, Any]:
        """Free initial road"""
        is_valid, error = validate_player_known(self.ledger, name)
        if is_valid:
            is_valid, error = validate_pieces_available(self.ledger, name, "roads")
        if not is_valid:
            return self._error_result(error, "PLACE_ROAD")
        self.ledger.place_road(name)
        return self._success_result("PLACE_ROAD", player=name)

    def receive_starting_resources(self, name: str, resources: Mapping) -> dict[str, Any]:
        """
        Resources from the second settlement

        Before tracking starts these seed the tracker's root state; afterwards
        they are processed as an ordinary gain.
        """
        action = "STARTING_RESOURCES"
        result = self.ensure_player(name)
        if not result["success"]:
            return self._error_result(result["reason"], action)
        is_valid, error = validate_resource_amounts(resources, action=action)
        if not is_valid:
            return self._error_result(error, action)

        resources = _normalise(resources)
        with self._lock:
            if self.tracker is None:
                self.ledger.record_starting_resources(name, resources)
                logger.info(f"{name} received starting resources")
                return self._success_result(action, player=name)
            self.ledger.get(name).starting_resources.apply(resources)
        return self._submit(action, ResourceGain, player=name, resources=resources)

    # ========== Turn Actions ==========

    def roll_dice(self, total: int) -> dict[str, Any]:
        is_valid, error = validate_dice_total(total)
        if not is_valid:
            return self._error_result(error, "ROLL")
        self.ledger.record_roll(total)
        logger.debug(f"Dice rolled: {total} (seen {self.ledger.dice_rolls[total]} times)")
        return self._success_result("ROLL", total=total)

    def get_resources(self, name: str, resources: Mapping) -> dict[str, Any]:
        return self._gain("GET_RESOURCES", name, resources)

    def year_of_plenty_take(self, name: str, resources: Mapping) -> dict[str, Any]:
        return self._gain("YEAR_OF_PLENTY_TAKE", name, resources)

    def discard(self, name: str, resources: Mapping) -> dict[str, Any]:
        return self._loss("DISCARD", name, resources)

    def build_road(self, name: str) -> dict[str, Any]:
        return self._build("BUILD_ROAD", name, "road", "roads", self.ledger.place_road)

    def build_settlement(self, name: str) -> dict[str, Any]:
        return self._build("BUILD_SETTLEMENT", name, "settlement", "settlements", self.ledger.place_settlement)

    def build_city(self, name: str) -> dict[str, Any]:
        return self._build("BUILD_CITY", name, "city", "cities", self.ledger.build_city)

    def buy_dev_card(self, name: str) -> dict[str, Any]:
        is_valid, error = validate_dev_card_available(self.ledger)
        if not is_valid:
            return self._error_result(error, "BUY_DEV_CARD")
        return self._build("BUY_DEV_CARD", name, "dev_card", None, lambda _: self.ledger.draw_dev_card())

    def bank_trade(self, name: str, resource_changes: Mapping) -> dict[str, Any]:
        action = "BANK_TRADE"
        is_valid, error = self._check(name, resource_changes, action, signed=True)
        if not is_valid:
            return self._error_result(error, action)
        return self._submit(action, BankTrade, player=name, resource_changes=_normalise(resource_changes))

    def trade(self, player_a: str, player_b: str, resource_changes: Mapping) -> dict[str, Any]:
        """resource_changes from player_a's side: negative = given by A"""
        action = "TRADE"
        is_valid, error = self._check(player_a, resource_changes, action, signed=True)
        if is_valid:
            is_valid, error = validate_player_known(self.ledger, player_b)
        if not is_valid:
            return self._error_result(error, action)
        return self._submit(
            action, Trade, player_a=player_a, player_b=player_b, resource_changes=_normalise(resource_changes)
        )

    def offer(self, name: str, offered_resources: Mapping) -> dict[str, Any]:
        action = "OFFER"
        is_valid, error = self._check(name, offered_resources, action)
        if not is_valid:
            return self._error_result(error, action)
        return self._submit(action, TradeOffer, player=name, offered_resources=_normalise(offered_resources))

    def steal(self, thief: str, victim: str, resource: Resource | str | None = None) -> dict[str, Any]:
        """Robber steal; resource is None when the card was not visible"""
        action = "STEAL"
        for name in (thief, victim):
            is_valid, error = validate_player_known(self.ledger, name)
            if not is_valid:
                return self._error_result(error, action)
        return self._submit(action, RobberSteal, thief=thief, victim=victim, resource=resource)

    def move_robber(self, name: str) -> dict[str, Any]:
        is_valid, error = validate_player_known(self.ledger, name)
        if not is_valid:
            return self._error_result(error, "MOVE_ROBBER")
        self.ledger.move_robber(name)
        return self._success_result("MOVE_ROBBER", player=name)

    # ========== Development Cards ==========

    def use_knight(self, name: str) -> dict[str, Any]:
        return self._play_card("USE_KNIGHT", name, "knights")

    def use_year_of_plenty(self, name: str) -> dict[str, Any]:
        return self._play_card("USE_YEAR_OF_PLENTY", name, "year_of_plenty")

    def use_road_building(self, name: str) -> dict[str, Any]:
        return self._play_card("USE_ROAD_BUILDING", name, "road_building")

    def use_monopoly(self, name: str) -> dict[str, Any]:
        return self._play_card("USE_MONOPOLY", name, "monopoly")

    def monopoly_steal(self, name: str, resource: Resource | str, total_stolen: int) -> dict[str, Any]:
        action = "MONOPOLY_STEAL"
        is_valid, error = validate_player_known(self.ledger, name)
        if not is_valid:
            return self._error_result(error, action)
        return self._submit(action, Monopoly, player=name, resource_type=resource, total_stolen=total_stolen)

    # ========== Transactions ==========

    def resolve_transaction(self, transaction_id: str, resource: Resource | str) -> dict[str, Any]:
        """
        Resolve a hidden steal from outside knowledge

        Any other open steal settled by the resulting pruning is reported
        alongside it and emitted as TRANSACTION_RESOLVED.
        """
        action = "RESOLVE_TRANSACTION"
        if self.tracker is None:
            return self._error_result(f"Unknown transaction: {transaction_id}", action)
        try:
            resource = Resource.parse(resource)
        except ValueError as e:
            return self._error_result(str(e), action)

        with self._lock:
            open_ids = {t.id for t in self.tracker.get_unknown_transactions()}
            if transaction_id not in open_ids:
                return self._error_result(f"No open transaction {transaction_id}", action)
            if not self.tracker.resolve_unknown_transaction(transaction_id, resource):
                return self._error_result(f"No remaining variant has {transaction_id} as {resource.value}", action)
            resolved = [t for t in self.tracker.get_all_transactions() if t.id in open_ids and t.is_resolved]

        for transaction in resolved:
            self._emit(SessionEvents.TRANSACTION_RESOLVED, transaction)
        return self._success_result(action, transaction_id=transaction_id, resolved=[t.id for t in resolved])

    # ========== Helpers ==========

    def _check(self, name: str, resources: Mapping, action: str, signed: bool = False) -> tuple[bool, str | None]:
        is_valid, error = validate_player_known(self.ledger, name)
        if not is_valid:
            return is_valid, error
        return validate_resource_amounts(resources, signed=signed, action=action)

    def _gain(self, action: str, name: str, resources: Mapping) -> dict[str, Any]:
        is_valid, error = self._check(name, resources, action)
        if not is_valid:
            return self._error_result(error, action)
        return self._submit(action, ResourceGain, player=name, resources=_normalise(resources))

    def _loss(self, action: str, name: str, resources: Mapping) -> dict[str, Any]:
        is_valid, error = self._check(name, resources, action)
        if not is_valid:
            return self._error_result(error, action)
        return self._submit(action, ResourceLoss, player=name, resources=_normalise(resources))

    def _build(
        self,
        action: str,
        name: str,
        cost_key: str,
        piece: str | None,
        record: Callable[[str], None],
    ) -> dict[str, Any]:
        is_valid, error = validate_player_known(self.ledger, name)
        if is_valid and piece:
            is_valid, error = validate_pieces_available(self.ledger, name, piece)
        if not is_valid:
            return self._error_result(error, action)

        cost = config.get("game_rules", "building_costs", {})[cost_key]
        result = self._loss(action, name, cost)
        if result["success"]:
            record(name)
        return result

    def _play_card(self, action: str, name: str, kind: str) -> dict[str, Any]:
        is_valid, error = validate_player_known(self.ledger, name)
        if is_valid:
            is_valid, error = validate_dev_card_available(self.ledger, kind)
        if not is_valid:
            return self._error_result(error, action)
        self.ledger.play_dev_card(name, kind)
        logger.debug(f"{name} played {kind}")
        return self._success_result(action, player=name, card=kind)

    # ========== Queries ==========

    def get_player_summary(self, name: str) -> dict[str, Any] | None:
        """Ledger counters plus the tracker's resource summary for one player"""
        player = self.ledger.get(name)
        if player is None:
            return None
        summary = player.to_dict()
        if self.tracker is not None:
            summary["resources"] = {
                resource.value: stats for resource, stats in self.tracker.get_player_resources(name).items()
            }
        else:
            summary["resources"] = {
                resource.value: {"min": count, "max": count, "most_likely": count, "confidence": 1.0}
                for resource, count in player.known_resources.items()
            }
        return summary

    # ========== Observer Pattern ==========

    def subscribe(self, event: SessionEvents, callback: Callable):
        """Subscribe to session events"""
        with self._lock:
            self._observers[event].append(callback)
            logger.debug(f"Subscribed to {event.value}")

    def unsubscribe(self, event: SessionEvents, callback: Callable):
        """Unsubscribe from session events"""
        with self._lock:
            if callback in self._observers[event]:
                self._observers[event].remove(callback)
                logger.debug(f"Unsubscribed from {event.value}")

    def _emit(self, event: SessionEvents, data: Any = None):
        """Emit an event to all subscribers (releases lock before calling callbacks)"""
        with self._lock:
            callbacks = list(self._observers[event])

        for callback in callbacks:
            try:
                callback(data)
            except Exception as e:
                logger.error(f"Observer callback error for {event.value}: {e}")

    # ========== Results ==========

    def _success_result(self, action: str, **kwargs) -> dict[str, Any]:
        """Create success result dictionary"""
        result = {
            "success": True,
            "action": action,
            "reason": None,
            "variant_count": self.tracker.get_variant_count() if self.tracker else 1,
        }
        result.update(kwargs)
        return result

    def _error_result(self, reason: str, action: str) -> dict[str, Any]:
        """Create error result dictionary"""
        logger.warning(f"{action} rejected: {reason}")
        return {
            "success": False,
            "action": action,
            "reason": reason,
        }


def _normalise(resources: Mapping) -> dict[Resource, int]:
    return {Resource.parse(key): amount for key, amount in resources.items() if amount}
