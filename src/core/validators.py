"""
Input validation functions for session actions

Validators return (is_valid, error_message) tuples; GameSession turns a
failure into an error result without touching the tracker.
"""

from collections.abc import Mapping

from config import config
from models import Resource

from .ledger import DEV_CARD_KINDS, Ledger


class ValidationError(Exception):
    """Raised when validation fails"""

    pass


def validate_player_name(name: str | None) -> tuple[bool, str | None]:
    """
    Validate a player name is usable

    Returns:
        Tuple of (is_valid, error_message)
    """
    if name is None:
        return False, "Player name is required"
    if not isinstance(name, str) or not name.strip():
        return False, f"Invalid player name: {name!r}"
    return True, None


def validate_player_known(ledger: Ledger, name: str | None) -> tuple[bool, str | None]:
    """Validate the player has been registered in this session"""
    is_valid, error = validate_player_name(name)
    if not is_valid:
        return is_valid, error
    if name not in ledger:
        return False, f"Unknown player: {name}"
    return True, None


def validate_resource_amounts(
    resources: Mapping | None, signed: bool = False, action: str = "ACTION"
) -> tuple[bool, str | None]:
    """
    Validate a resource mapping names real resources with integer amounts

    Args:
        resources: {resource: amount}
        signed: Whether negative amounts are allowed (trades)
        action: Action type (for error messages)
    """
    if not resources:
        return False, f"{action} requires at least one resource"

    has_amount = False
    for key, amount in resources.items():
        try:
            Resource.parse(key)
        except ValueError as e:
            return False, str(e)
        if isinstance(amount, bool) or not isinstance(amount, int):
            return False, f"{action} amount for {key} must be an integer, got {amount!r}"
        if amount < 0 and not signed:
            return False, f"{action} amount for {key} cannot be negative"
        if amount != 0:
            has_amount = True

    if not has_amount:
        return False, f"{action} has no resource changes"
    return True, None


def validate_dice_total(total: int) -> tuple[bool, str | None]:
    """Validate a dice total lies in the configured range"""
    low, high = config.get("game_rules", "dice_range", (2, 12))
    if isinstance(total, bool) or not isinstance(total, int):
        return False, f"Dice total must be an integer, got {total!r}"
    if total < low or total > high:
        return False, f"Dice total {total} outside {low}..{high}"
    return True, None


def validate_pieces_available(ledger: Ledger, name: str, piece: str) -> tuple[bool, str | None]:
    """Validate the player still has a piece of this kind to place"""
    player = ledger.get(name)
    if player is None:
        return False, f"Unknown player: {name}"
    remaining = getattr(player, piece, None)
    if remaining is None:
        return False, f"Unknown piece: {piece}"
    if remaining <= 0:
        return False, f"{name} has no {piece} left"
    return True, None


def validate_dev_card_available(ledger: Ledger, kind: str | None = None) -> tuple[bool, str | None]:
    """
    Validate the development deck can supply a card

    Args:
        kind: Card kind being played, or None when buying an unseen card
    """
    if kind is None:
        if ledger.dev_cards_remaining <= 0:
            return False, "Development card deck is empty"
        return True, None
    if kind not in DEV_CARD_KINDS:
        return False, f"Unknown development card: {kind}"
    if ledger.dev_deck.get(kind, 0) <= 0:
        return False, f"No {kind} cards left to play"
    return True, None


def require_valid(result: tuple[bool, str | None]):
    """
    Strict form of a validator result

    Raises:
        ValidationError: If the validator failed
    """
    is_valid, error = result
    if not is_valid:
        raise ValidationError(error)
