"""
Tests for the deterministic Ledger
"""

from core import Ledger
from models import Resource


class TestPlayerLedger:
    """Tests for per-player counters"""

    def test_new_player_defaults(self):
        """Test a new player starts with the full set of pieces"""
        player = Ledger().ensure_player("Alice")

        assert (player.settlements, player.cities, player.roads) == (5, 4, 15)
        assert player.victory_points == 0
        assert player.card_count == 0
        assert player.dev_cards_played["knights"] == 0

    def test_ensure_player_is_idempotent(self):
        """Test registering twice returns the same record"""
        ledger = Ledger()

        assert ledger.ensure_player("Alice") is ledger.ensure_player("Alice")
        assert len(ledger.players) == 1

    def test_settlement_and_city(self):
        """Test a city replaces a settlement and both score a point"""
        ledger = Ledger()
        ledger.place_settlement("Alice")
        ledger.build_city("Alice")

        player = ledger.get("Alice")
        assert player.settlements == 5
        assert player.cities == 3
        assert player.victory_points == 2

    def test_knight_counts(self):
        """Test playing a knight updates player and deck"""
        ledger = Ledger()
        ledger.play_dev_card("Alice", "knights")

        assert ledger.get("Alice").knights_played == 1
        assert ledger.dev_deck["knights"] == 13


class TestResources:
    """Tests for naive resource bookkeeping"""

    def test_gain_draws_from_bank(self):
        """Test gains move cards out of the bank"""
        ledger = Ledger()
        ledger.record_gain("Alice", {Resource.ORE: 2})

        assert ledger.bank[Resource.ORE] == 17
        assert ledger.get("Alice").known_resources[Resource.ORE] == 2
        assert ledger.get("Alice").card_count == 2

    def test_loss_returns_to_bank(self):
        """Test losses go back to the bank"""
        ledger = Ledger()
        ledger.record_gain("Alice", {Resource.ORE: 3})
        ledger.record_loss("Alice", {Resource.ORE: 2})

        assert ledger.bank[Resource.ORE] == 18
        assert ledger.get("Alice").card_count == 1

    def test_hidden_steal_moves_card_count_only(self):
        """Test an unseen steal changes card counts but not known kinds"""
        ledger = Ledger()
        ledger.record_gain("Bob", {Resource.TREE: 1, Resource.BRICK: 1})
        ledger.record_steal("Alice", "Bob")

        assert ledger.get("Alice").card_count == 1
        assert ledger.get("Bob").card_count == 1
        assert ledger.get("Bob").known_resources.total() == 2

    def test_trade_moves_both_sides(self):
        """Test trade deltas are mirrored on the partner"""
        ledger = Ledger()
        ledger.record_trade("Alice", "Bob", {Resource.BRICK: -2, Resource.ORE: 1})

        assert ledger.get("Alice").known_resources[Resource.ORE] == 1
        assert ledger.get("Bob").known_resources[Resource.BRICK] == 2
        assert ledger.get("Alice").card_count == -1
        assert ledger.get("Bob").card_count == 1

    def test_monopoly_zeroes_others(self):
        """Test a monopoly clears other players' known counts"""
        ledger = Ledger()
        ledger.record_gain("Bob", {Resource.WHEAT: 2})
        ledger.record_gain("Charlie", {Resource.WHEAT: 1})
        ledger.record_monopoly("Alice", Resource.WHEAT, 3)

        assert ledger.get("Alice").known_resources[Resource.WHEAT] == 3
        assert ledger.get("Bob").known_resources[Resource.WHEAT] == 0
        assert ledger.get("Charlie").card_count == 0

    def test_starting_resources_recorded(self):
        """Test starting resources are kept separately"""
        ledger = Ledger()
        ledger.record_starting_resources("Alice", {Resource.SHEEP: 1})

        assert ledger.get("Alice").starting_resources[Resource.SHEEP] == 1
        assert ledger.get("Alice").known_resources[Resource.SHEEP] == 1


class TestGameCounters:
    """Tests for game-level counters"""

    def test_dice_histogram(self):
        """Test rolls are counted per total"""
        ledger = Ledger()
        ledger.record_roll(8)
        ledger.record_roll(8)

        assert sorted(ledger.dice_rolls) == list(range(2, 13))
        assert ledger.dice_rolls[8] == 2

    def test_dev_deck_draw(self):
        """Test buying a card shrinks the deck"""
        ledger = Ledger()
        assert ledger.dev_cards_remaining == 25

        ledger.draw_dev_card()

        assert ledger.dev_cards_remaining == 24

    def test_to_dict(self):
        """Test export includes players and game counters"""
        ledger = Ledger()
        ledger.move_robber("Alice")

        data = ledger.to_dict()

        assert data["players"]["Alice"]["robber_moves"] == 1
        assert data["bank"]["tree"] == 19
        assert data["dev_cards_remaining"] == 25
