"""
Shared pytest fixtures for bracket engine tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the exhaustive team-count sweeps
"""
import pytest
import random
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.store import TournamentStore
from bracket.tournament import TournamentManager


@pytest.fixture
def store(tmp_path):
    """Store backed by a temporary data directory."""
    return TournamentStore(str(tmp_path / "data"))


@pytest.fixture
def manager(store):
    """Manager with a fixed random seed so random seeding is reproducible."""
    return TournamentManager(store, rng=random.Random(42))


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Flask test client writing to a temporary data directory."""
    import app as app_module
    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path / "api-data"))
    app_module.app.config['TESTING'] = True
    with app_module.app.test_client() as client:
        yield client


@pytest.fixture
def four_teams():
    return ["A", "B", "C", "D"]


@pytest.fixture
def five_teams():
    return ["A", "B", "C", "D", "E"]


@pytest.fixture
def play_out(manager):
    """Return a function that plays a tournament to the end, team1 always winning 20-10."""
    from bracket.tournament import get_playable_matches

    def _play_out(tournament):
        for _ in range(4 * len(tournament.team_names) + 4):
            playable = sorted(get_playable_matches(tournament), key=lambda m: m.quiz_number)
            if not playable:
                break
            tournament = manager.record_match_result(
                tournament.tournament_id, playable[0].match_id, 20, 10)
        return tournament

    return _play_out
