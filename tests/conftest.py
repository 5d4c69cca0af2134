"""
Global test configuration: environment isolation, fake time and config factories.
"""

from collections.abc import Callable
from datetime import datetime
import logging
import os
from typing import Any

import pytest

from casegen.config import FrozenConfig, resolve_config
from casegen.pipeline.quota import QuotaState


# --- Environment Isolation (Autouse) ---
@pytest.fixture(autouse=True)
def isolate_casegen_env(request, monkeypatch):
    """Ensure a clean CASEGEN_* environment for each test.

    Escape hatch: @pytest.mark.allow_env_pollution keeps the environment.
    """
    if request.node.get_closest_marker("allow_env_pollution"):
        return
    for key in list(os.environ):
        if key.startswith("CASEGEN_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("TOGETHER_API_KEY", raising=False)
    monkeypatch.delenv("DEBUG", raising=False)


@pytest.fixture(autouse=True)
def neutral_config_files(request, monkeypatch, tmp_path):
    """Point both config file lookups at isolated, initially missing files.

    Prevents a developer's ~/.config/casegen.toml or an enclosing
    pyproject.toml from leaking into tests.
    """
    if request.node.get_closest_marker("allow_real_config_files"):
        return
    isolated = tmp_path / "config_isolated"
    isolated.mkdir(parents=True, exist_ok=True)
    monkeypatch.setenv("CASEGEN_CONFIG_HOME", str(isolated / "casegen.toml"))
    monkeypatch.setenv("CASEGEN_PYPROJECT_PATH", str(isolated / "pyproject.toml"))


@pytest.fixture
def config_files(tmp_path):
    """Write project and home config files at the isolated locations.

    Returns a helper taking `pyproject=` and `home=` TOML strings.
    """

    def _write(*, pyproject: str = "", home: str = "") -> None:
        isolated = tmp_path / "config_isolated"
        if pyproject:
            (isolated / "pyproject.toml").write_text(pyproject, encoding="utf-8")
        if home:
            (isolated / "casegen.toml").write_text(home, encoding="utf-8")

    return _write


# --- Time ---
class FakeClock:
    """Controllable epoch clock whose `sleep` advances time instantly."""

    def __init__(self, start: float) -> None:
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    # Local noon, so a few minutes either way stays on the same calendar day.
    return FakeClock(datetime(2025, 3, 10, 12, 0, 0).timestamp())


@pytest.fixture
def quota() -> QuotaState:
    return QuotaState()


@pytest.fixture
def make_config() -> Callable[..., FrozenConfig]:
    """Factory for FrozenConfig built through the real resolver."""

    def _make(**overrides: Any) -> FrozenConfig:
        return resolve_config(overrides or None).to_frozen()

    return _make


# --- Logging ---
@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def pytest_configure(config):
    """Configure custom markers for test organization."""
    markers = [
        "unit: Fast, isolated unit tests",
        "integration: Component integration tests with stubbed HTTP",
        "contract: Invariants that must hold across the pipeline",
        "allow_env_pollution: Keep CASEGEN_* environment variables",
        "allow_real_config_files: Read real pyproject/home config files",
    ]
    for marker in markers:
        config.addinivalue_line("markers", marker)
