"""
Shared pytest fixtures for bracket tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - skip the exhaustive participant-count sweeps
"""
import pytest
import random
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from core.bracket import BracketManager
from core.models import Participant


@pytest.fixture
def client():
    """Create a test client with a fresh in-memory bracket."""
    import app as app_module
    app_module.app.config['TESTING'] = True
    app_module.reset_bracket_state()
    with app_module.app.test_client() as client:
        yield client
    app_module.reset_bracket_state()


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point settings storage at a temporary directory."""
    import app as app_module

    data_dir = tmp_path / "data"
    data_dir.mkdir()

    monkeypatch.setattr(app_module, 'DATA_DIR', str(data_dir))
    monkeypatch.setattr(app_module, 'SETTINGS_FILE', str(data_dir / "settings.yaml"))
    monkeypatch.setattr(app_module, 'SETTINGS_LOCK_FILE', str(data_dir / ".lock"))
    app_module.reset_bracket_state()

    return str(data_dir)


@pytest.fixture
def rng():
    """Deterministic random source."""
    return random.Random(1234)


@pytest.fixture
def eight_player_bracket(rng):
    """Standard-seeded 8 participant bracket."""
    return BracketManager(participant_count=8, rng=rng)


@pytest.fixture
def five_player_bracket(rng):
    """5 participants: sequential fallback seeding with a first round bye."""
    return BracketManager(participant_count=5, rng=rng)


@pytest.fixture
def sample_participants():
    """Four seeded participants."""
    return [
        Participant(name="Alice", id=1, seed=1),
        Participant(name="Bob", id=2, seed=2),
        Participant(name="Carol", id=3, seed=3),
        Participant(name="Dave", id=4, seed=4),
    ]
