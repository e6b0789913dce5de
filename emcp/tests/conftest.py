"""
Shared test fixtures for the charge-controller client tests.

All ``EMCP_*`` environment variables are cleaned before each test so a
developer's shell or ``.env`` file never leaks into config tests.

CHANGELOG:
- 2026-10-17: Initial creation

TODO:
- None
"""

from __future__ import annotations

import pytest
from fakes import FakeTransport

# All ControllerSettings environment variable names, used for cleanup.
_ALL_EMCP_ENV_VARS = (
    "EMCP_HOST",
    "EMCP_PORT",
    "EMCP_SLAVE_ID",
    "EMCP_TIMEOUT_S",
    "EMCP_RESET_TIMEOUT_S",
    "EMCP_READ_CHARGING_CURRENT",
    "EMCP_LOG_LEVEL",
    "EMCP_LOG_JSON",
)


@pytest.fixture(autouse=True)
def _clean_emcp_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all EMCP_* env vars and isolate from .env files before each test."""
    for var in _ALL_EMCP_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set every ControllerSettings environment variable.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "EMCP_HOST": "10.0.0.1",
        "EMCP_PORT": "1502",
        "EMCP_SLAVE_ID": "1",
        "EMCP_TIMEOUT_S": "5.5",
        "EMCP_RESET_TIMEOUT_S": "2",
        "EMCP_READ_CHARGING_CURRENT": "false",
        "EMCP_LOG_LEVEL": "debug",
        "EMCP_LOG_JSON": "true",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def transport() -> FakeTransport:
    """A fake transport serving a valid status (state 'B', no faults)."""
    return FakeTransport()
