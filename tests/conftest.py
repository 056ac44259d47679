import os
import sys
import pytest

# Put the project root on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fluxcors.config import reset_config
from fluxcors.logging_config import reset_logging


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Clear cached config and logging setup around every test"""
    reset_config()
    reset_logging()
    yield
    reset_config()
    reset_logging()


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable load_config reads"""
    from fluxcors.config import _ENV_MAP
    for name in _ENV_MAP:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
