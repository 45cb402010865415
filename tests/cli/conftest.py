import pytest


@pytest.fixture(autouse=True)
def _isolate_verbosity(monkeypatch):
    """The CLI writes GLOBEVIEW_VERBOSITY into the environment; undo it per test."""
    monkeypatch.setenv("GLOBEVIEW_VERBOSITY", "info")
    yield
