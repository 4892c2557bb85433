"""Core module - Variant tree, transaction processing and session logic"""

from . import validators
from .game_session import GameSession, SessionEvents
from .ledger import Ledger, PlayerLedger
from .probable_game_state import ProbableGameState, ProcessOutcome
from .transaction_processor import TransactionProcessor
from .validators import (
    ValidationError,
    require_valid,
    validate_dev_card_available,
    validate_dice_total,
    validate_pieces_available,
    validate_player_known,
    validate_player_name,
    validate_resource_amounts,
)
from .variant_tree import (
    Branch,
    ProbabilityInvariantError,
    RootRemovalError,
    Variant,
    VariantNode,
    VariantTree,
    VariantTreeError,
)

__all__ = [
    "Branch",
    "GameSession",
    "Ledger",
    "PlayerLedger",
    "ProbabilityInvariantError",
    "ProbableGameState",
    "ProcessOutcome",
    "RootRemovalError",
    "SessionEvents",
    "TransactionProcessor",
    "ValidationError",
    "Variant",
    "VariantNode",
    "VariantTree",
    "VariantTreeError",
    "require_valid",
    "validate_dev_card_available",
    "validate_dice_total",
    "validate_pieces_available",
    "validate_player_known",
    "validate_player_name",
    "validate_resource_amounts",
    "validators",
]
