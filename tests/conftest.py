"""
Shared pytest fixtures for bracket runner tests.

Running tests:
    pytest tests/
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bracket.models import Contestant


def make_contestants(count):
    """Contestants named A, B, C, ... (then C27, C28, ... past Z)."""
    names = [chr(ord('A') + i) if i < 26 else f'C{i + 1}' for i in range(count)]
    return [Contestant(id=f'id-{name}', name=name) for name in names]


@pytest.fixture
def three_contestants():
    return make_contestants(3)


@pytest.fixture
def four_contestants():
    return make_contestants(4)


@pytest.fixture
def eight_contestants():
    return make_contestants(8)


@pytest.fixture
def temp_data_dir(tmp_path, monkeypatch):
    """Point the web app's stores at a temporary directory."""
    import app as app_module

    saves_dir = tmp_path / "saves"
    shared_dir = tmp_path / "shared-tournaments"

    monkeypatch.setattr(app_module, 'DATA_DIR', str(tmp_path))
    monkeypatch.setattr(app_module, 'SAVES_DIR', str(saves_dir))
    monkeypatch.setattr(app_module, 'SHARED_DIR', str(shared_dir))
    monkeypatch.setattr(app_module, 'MAX_SAVED_TOURNAMENTS', 10)

    return tmp_path


@pytest.fixture
def client(temp_data_dir):
    """Create a test client backed by temporary stores."""
    from app import app
    app.config['TESTING'] = True
    with app.test_client() as client:
        yield client
