"""
Shared test fixtures for pytest
"""

import pytest

from config import config
from core import GameSession, ProbableGameState
from services import setup_logging


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for all tests"""
    setup_logging()


@pytest.fixture(autouse=True)
def restore_config():
    """Drop runtime config overrides made by a test"""
    yield
    config.reset_overrides()


@pytest.fixture
def make_tracker():
    """Factory for a fresh ProbableGameState from {player: {resource: count}}"""

    def _make(**players):
        return ProbableGameState(players)

    return _make


@pytest.fixture
def two_card_victim(make_tracker):
    """Bob holds one tree and one brick; Alice holds nothing"""
    return make_tracker(Alice={}, Bob={"tree": 1, "brick": 1})


@pytest.fixture
def uneven_victim(make_tracker):
    """Bob holds two trees and a brick; Alice holds nothing"""
    return make_tracker(Alice={}, Bob={"tree": 2, "brick": 1})


@pytest.fixture
def three_players(make_tracker):
    """Alice wheat:4, Bob wheat:2 brick:1, Charlie ore:2"""
    return make_tracker(
        Alice={"wheat": 4},
        Bob={"wheat": 2, "brick": 1},
        Charlie={"ore": 2},
    )


@pytest.fixture
def hidden_steal():
    """Raw payload for a robber steal whose card was not seen"""

    def _steal(thief="Alice", victim="Bob"):
        return {"type": "robber_steal", "thief": thief, "victim": victim}

    return _steal


@pytest.fixture
def session():
    """GameSession with three registered players"""
    return GameSession(players=["Alice", "Bob", "Charlie"])
