"""
Tests for validation functions
"""

import pytest

from core import (
    Ledger,
    ValidationError,
    require_valid,
    validate_dev_card_available,
    validate_dice_total,
    validate_pieces_available,
    validate_player_known,
    validate_player_name,
    validate_resource_amounts,
)


class TestValidatePlayer:
    """Tests for player name checks"""

    def test_valid_name(self):
        """Test a non-empty name passes"""
        is_valid, error = validate_player_name("Alice")

        assert is_valid == True
        assert error is None

    def test_blank_name(self):
        """Test whitespace is rejected"""
        is_valid, error = validate_player_name("  ")

        assert is_valid == False
        assert "Invalid player name" in error

    def test_unknown_player(self):
        """Test an unregistered player fails"""
        is_valid, error = validate_player_known(Ledger(), "Zed")

        assert is_valid == False
        assert "Unknown player" in error


class TestValidateResourceAmounts:
    """Tests for resource mapping checks"""

    def test_valid_amounts(self):
        """Test positive integer amounts pass"""
        assert validate_resource_amounts({"tree": 1, "Brick": 2}) == (True, None)

    def test_unknown_resource(self):
        """Test an unknown kind is rejected"""
        is_valid, error = validate_resource_amounts({"gold": 1})

        assert is_valid == False
        assert "Unknown resource" in error

    def test_negative_needs_signed(self):
        """Test negative amounts only pass for signed changes"""
        assert validate_resource_amounts({"wheat": -4, "ore": 1})[0] == False
        assert validate_resource_amounts({"wheat": -4, "ore": 1}, signed=True)[0] == True

    def test_empty_or_all_zero(self):
        """Test an empty or all-zero mapping is rejected"""
        assert validate_resource_amounts({})[0] == False
        assert validate_resource_amounts({"ore": 0})[0] == False

    def test_non_integer(self):
        """Test fractional amounts are rejected"""
        is_valid, error = validate_resource_amounts({"ore": 1.5})

        assert is_valid == False
        assert "integer" in error


class TestValidateDice:
    """Tests for dice totals"""

    @pytest.mark.parametrize("total", [2, 7, 12])
    def test_in_range(self, total):
        assert validate_dice_total(total) == (True, None)

    @pytest.mark.parametrize("total", [1, 13, "8"])
    def test_out_of_range(self, total):
        assert validate_dice_total(total)[0] == False


class TestValidatePiecesAndCards:
    """Tests for piece and development card availability"""

    def test_pieces_exhausted(self):
        """Test placing more roads than owned fails"""
        ledger = Ledger()
        player = ledger.ensure_player("Alice")
        player.roads = 0

        is_valid, error = validate_pieces_available(ledger, "Alice", "roads")

        assert is_valid == False
        assert "no roads left" in error

    def test_dev_card_kind_exhausted(self):
        """Test playing a kind with none left fails"""
        ledger = Ledger()
        ledger.dev_deck["monopoly"] = 0

        assert validate_dev_card_available(ledger, "monopoly")[0] == False
        assert validate_dev_card_available(ledger, "knights") == (True, None)

    def test_unknown_dev_card(self):
        assert validate_dev_card_available(Ledger(), "dragons")[0] == False

    def test_empty_deck(self):
        """Test buying from an empty deck fails"""
        ledger = Ledger()
        ledger.dev_cards_remaining = 0

        assert validate_dev_card_available(ledger)[0] == False


class TestRequireValid:
    """Tests for the strict helper"""

    def test_raises_on_failure(self):
        with pytest.raises(ValidationError, match="Dice total 13"):
            require_valid(validate_dice_total(13))

    def test_passes_silently(self):
        require_valid(validate_dice_total(6))
