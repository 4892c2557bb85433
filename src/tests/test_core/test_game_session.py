"""
Tests for GameSession actions, lifecycle and observers
"""

import logging

import pytest

from core import GameSession, ProbableGameState, SessionEvents, ValidationError
from models import AmbiguousTransaction, Resource


def tracked(session, player, resource):
    """Most likely count of resource for player"""
    return session.tracker.get_player_resources(player)[Resource.parse(resource)]["most_likely"]


class TestSetup:
    """Tests for initial placement and starting resources"""

    def test_place_settlement_registers_player(self, session):
        """Test initial settlement adds the player and scores a point"""
        result = session.place_settlement("Dave")

        assert result["success"] == True
        assert "Dave" in session.players
        assert session.ledger.get("Dave").settlements == 4
        assert session.ledger.get("Dave").victory_points == 1

    def test_place_road_requires_known_player(self, session):
        """Test roads cannot be placed by an unknown player"""
        result = session.place_road("Zed")

        assert result["success"] == False
        assert "Unknown player" in result["reason"]

    def test_starting_resources_do_not_start_tracker(self, session):
        """Test starting resources seed the ledger only"""
        result = session.receive_starting_resources("Alice", {"tree": 1, "brick": 1})

        assert result["success"] == True
        assert not session.tracker_started
        assert session.ledger.get("Alice").starting_resources[Resource.TREE] == 1

    def test_first_resource_event_starts_tracker(self, session):
        """Test the tracker is seeded from starting resources on first use"""
        started = []
        session.subscribe(SessionEvents.TRACKER_STARTED, started.append)
        session.receive_starting_resources("Alice", {"tree": 1, "brick": 1})

        session.get_resources("Bob", {"ore": 1})

        assert session.tracker_started
        assert len(started) == 1 and isinstance(started[0], ProbableGameState)
        assert tracked(session, "Alice", "tree") == 1
        assert tracked(session, "Bob", "ore") == 1

    def test_starting_resources_after_tracking_are_gains(self, session):
        """Test late starting resources flow through the tracker"""
        session.get_resources("Bob", {"ore": 1})

        session.receive_starting_resources("Alice", {"sheep": 2})

        assert tracked(session, "Alice", "sheep") == 2


class TestBuilding:
    """Tests for building and buying"""

    def test_build_road_pays_cost(self, session):
        """Test a road costs tree and brick"""
        session.receive_starting_resources("Alice", {"tree": 1, "brick": 1})

        result = session.build_road("Alice")

        assert result["success"] == True
        assert session.ledger.get("Alice").roads == 14
        assert tracked(session, "Alice", "tree") == 0
        assert tracked(session, "Alice", "brick") == 0

    def test_build_settlement_scores(self, session):
        """Test a built settlement costs four kinds and scores a point"""
        session.receive_starting_resources("Alice", {"tree": 1, "brick": 1, "sheep": 1, "wheat": 1})

        session.build_settlement("Alice")

        assert session.ledger.get("Alice").victory_points == 1
        assert session.tracker.get_player_resource_probabilities("Alice")["minimum_resources"] == {
            r: 0 for r in Resource
        }

    def test_unaffordable_city_exhausts_variants(self, session):
        """Test building without the cards empties the hypothesis set"""
        exhausted = []
        session.subscribe(SessionEvents.VARIANTS_EXHAUSTED, exhausted.append)
        session.receive_starting_resources("Alice", {"ore": 1})

        result = session.build_city("Alice")

        assert result["exhausted"] == True
        assert len(exhausted) == 1
        assert session.tracker.get_variant_count() == 0

    def test_buy_dev_card(self, session):
        """Test a development card costs sheep, wheat and ore"""
        session.receive_starting_resources("Bob", {"sheep": 1, "wheat": 1, "ore": 1})

        result = session.buy_dev_card("Bob")

        assert result["success"] == True
        assert session.ledger.dev_cards_remaining == 24
        assert tracked(session, "Bob", "ore") == 0

    def test_no_pieces_left(self, session):
        """Test building without pieces is rejected before touching the tracker"""
        session.ledger.get("Alice").roads = 0

        result = session.build_road("Alice")

        assert result["success"] == False
        assert not session.tracker_started


class TestTrading:
    """Tests for trades, offers and discards"""

    def test_player_trade(self, session):
        """Test resources change hands"""
        session.receive_starting_resources("Alice", {"brick": 1})
        session.receive_starting_resources("Bob", {"ore": 1})

        result = session.trade("Alice", "Bob", {"brick": -1, "ore": 1})

        assert result["success"] == True
        assert tracked(session, "Alice", "ore") == 1
        assert tracked(session, "Bob", "brick") == 1

    def test_trade_with_self_rejected(self, session):
        """Test schema validation errors become error results"""
        result = session.trade("Alice", "Alice", {"brick": -1, "ore": 1})

        assert result["success"] == False
        assert "two different players" in result["reason"]

    def test_bank_trade(self, session):
        """Test a 4:1 bank trade"""
        session.receive_starting_resources("Alice", {"wheat": 4})

        session.bank_trade("Alice", {"wheat": -4, "ore": 1})

        assert tracked(session, "Alice", "ore") == 1
        assert session.ledger.bank[Resource.WHEAT] == 19

    def test_discard_unknown_player(self, session):
        """Test actions for unknown players are rejected"""
        result = session.discard("Zed", {"ore": 1})

        assert result == {"success": False, "action": "DISCARD", "reason": "Unknown player: Zed"}

    def test_invalid_resource_rejected(self, session):
        """Test unknown resource names are rejected"""
        result = session.get_resources("Alice", {"gold": 1})

        assert result["success"] == False
        assert "Unknown resource" in result["reason"]


class TestRobber:
    """Tests for steals, transactions and observers"""

    def test_hidden_steal_opens_transaction(self, session):
        """Test an unseen steal reports the new transaction"""
        opened = []
        session.subscribe(SessionEvents.TRANSACTION_OPENED, opened.append)
        session.receive_starting_resources("Bob", {"tree": 1, "brick": 1})

        result = session.steal("Alice", "Bob")

        assert result["transaction_id"] == "steal-0001"
        assert len(opened) == 1 and isinstance(opened[0], AmbiguousTransaction)
        assert session.ledger.get("Alice").card_count == 1

    def test_offer_resolves_transaction(self, session):
        """Test a later offer resolves the steal and notifies observers"""
        resolved = []
        session.subscribe(SessionEvents.TRANSACTION_RESOLVED, resolved.append)
        session.receive_starting_resources("Bob", {"tree": 1, "brick": 1})
        session.steal("Alice", "Bob")

        result = session.offer("Alice", {"brick": 1})

        assert result["resolved"] == ["steal-0001"]
        assert resolved[0].resolved_resource == Resource.BRICK

    def test_manual_resolution_reports_dependent_steals(self, session):
        """Test resolving one steal also reports the steal it settles"""
        resolved = []
        session.subscribe(SessionEvents.TRANSACTION_RESOLVED, resolved.append)
        session.receive_starting_resources("Bob", {"tree": 1, "brick": 2})
        session.steal("Alice", "Bob")
        session.steal("Charlie", "Bob")

        result = session.resolve_transaction("steal-0001", "tree")

        assert result["success"] == True
        assert result["resolved"] == ["steal-0001", "steal-0002"]
        assert [t.id for t in resolved] == ["steal-0001", "steal-0002"]
        assert resolved[1].resolved_resource == Resource.BRICK
        assert tracked(session, "Charlie", "brick") == 1

    def test_manual_resolution_rejected(self, session):
        """Test unsupported or unknown resolutions are error results"""
        session.receive_starting_resources("Bob", {"tree": 1, "brick": 1})
        session.steal("Alice", "Bob")

        assert session.resolve_transaction("steal-0001", "ore")["success"] == False
        assert session.resolve_transaction("steal-0009", "tree")["success"] == False
        assert session.tracker.get_variant_count() == 2

    def test_visible_steal(self, session):
        """Test a seen steal moves the named card"""
        session.receive_starting_resources("Bob", {"sheep": 1})

        session.steal("Alice", "Bob", "sheep")

        assert tracked(session, "Alice", "sheep") == 1
        assert session.ledger.get("Alice").known_resources[Resource.SHEEP] == 1

    def test_steal_with_bad_resource(self, session):
        """Test a malformed resource is rejected"""
        result = session.steal("Alice", "Bob", "gold")

        assert result["success"] == False

    def test_move_robber(self, session):
        session.move_robber("Charlie")

        assert session.ledger.get("Charlie").robber_moves == 1


class TestDevelopmentCards:
    """Tests for playing development cards"""

    def test_use_knight(self, session):
        """Test knights are counted on player and deck"""
        result = session.use_knight("Alice")

        assert result["success"] == True
        assert session.ledger.get("Alice").knights_played == 1
        assert session.ledger.dev_deck["knights"] == 13

    def test_year_of_plenty(self, session):
        """Test the card is counted and the take is a gain"""
        session.use_year_of_plenty("Alice")
        session.year_of_plenty_take("Alice", {"ore": 2})

        assert session.ledger.get("Alice").dev_cards_played["year_of_plenty"] == 1
        assert tracked(session, "Alice", "ore") == 2

    def test_road_building(self, session):
        session.use_road_building("Bob")

        assert session.ledger.dev_deck["road_building"] == 1

    def test_monopoly(self, session):
        """Test monopoly play then steal"""
        session.receive_starting_resources("Bob", {"wheat": 2})
        session.use_monopoly("Alice")

        session.monopoly_steal("Alice", "wheat", 2)

        assert tracked(session, "Alice", "wheat") == 2
        assert tracked(session, "Bob", "wheat") == 0
        assert session.ledger.dev_deck["monopoly"] == 1

    def test_card_kind_exhausted(self, session):
        """Test playing a third monopoly fails"""
        session.use_monopoly("Alice")
        session.use_monopoly("Bob")

        result = session.use_monopoly("Charlie")

        assert result["success"] == False


class TestLifecycle:
    """Tests for dice, reset, local player and observers"""

    def test_roll_dice(self, session):
        assert session.roll_dice(8)["success"] == True
        assert session.ledger.dice_rolls[8] == 1
        assert session.roll_dice(13)["success"] == False

    def test_reset_keeps_local_player(self, session):
        """Test reset drops game state but not the observer identity"""
        resets = []
        session.subscribe(SessionEvents.SESSION_RESET, resets.append)
        session.set_local_player("Alice")
        session.get_resources("Alice", {"ore": 1})

        session.reset()

        assert session.local_player == "Alice"
        assert session.players == []
        assert session.tracker is None
        assert resets == ["Alice"]

    def test_local_player_must_be_named(self, session):
        """Test a blank local player raises"""
        with pytest.raises(ValidationError):
            session.set_local_player("")

    def test_process_raw_event(self, session):
        """Test raw classified events are accepted"""
        result = session.process({"type": "resource_gain", "player": "Alice", "resources": {"tree": 2}})

        assert result["success"] == True
        assert tracked(session, "Alice", "tree") == 2

    def test_process_invalid_event(self, session):
        """Test an unknown event type becomes an error result"""
        result = session.process({"type": "dice_roll"})

        assert result["success"] == False
        assert "Invalid event" in result["reason"]

    def test_callback_errors_are_logged(self, session, caplog):
        """Test a failing observer never breaks processing"""

        def broken(_):
            raise RuntimeError("boom")

        session.subscribe(SessionEvents.EVENT_PROCESSED, broken)

        with caplog.at_level(logging.ERROR):
            result = session.get_resources("Alice", {"ore": 1})

        assert result["success"] == True
        assert "Observer callback error for event_processed: boom" in caplog.text

    def test_unsubscribe(self, session):
        """Test unsubscribed callbacks are not called"""
        seen = []
        session.subscribe(SessionEvents.EVENT_PROCESSED, seen.append)
        session.unsubscribe(SessionEvents.EVENT_PROCESSED, seen.append)

        session.get_resources("Alice", {"ore": 1})

        assert seen == []

    def test_player_summary(self, session):
        """Test summary combines ledger counters and tracker ranges"""
        session.receive_starting_resources("Alice", {"tree": 1})
        before = session.get_player_summary("Alice")
        session.get_resources("Alice", {"tree": 1})
        after = session.get_player_summary("Alice")

        assert before["resources"]["tree"]["max"] == 1
        assert after["resources"]["tree"]["max"] == 2
        assert after["card_count"] == 2
        assert session.get_player_summary("Zed") is None


def test_session_without_players():
    """Test a session can start empty and register players later"""
    session = GameSession()

    session.place_settlement("Alice")

    assert session.players == ["Alice"]
