import pytest

from solo_trpg.config import _ENV_OVERRIDES


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's .env / shell settings out of every test."""
    for name in (*_ENV_OVERRIDES, "SOLO_TRPG_CONFIG"):
        monkeypatch.delenv(name, raising=False)
