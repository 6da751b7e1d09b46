"""Shared pytest fixtures for the create-node-backend test suite.

Provides reusable fixtures for:
- Representative project configurations
- Fast install settings (millisecond retry delays)
- Scripted network probes and cancel-key listeners
- A mock package-manager runner
"""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from create_node_backend.config import (
    Database,
    Framework,
    Language,
    ProjectConfig,
    Settings,
)
from create_node_backend.installer import CancelKeyListener


# ---------------------------------------------------------------------------
# Configurations
# ---------------------------------------------------------------------------


@pytest.fixture
def express_mongo_ts() -> ProjectConfig:
    """Express + MongoDB + TypeScript (the full MVC layout)."""
    return ProjectConfig(
        name="demo",
        framework=Framework.EXPRESS,
        database=Database.MONGODB,
        language=Language.TS,
    )


@pytest.fixture
def hono_none_js() -> ProjectConfig:
    """Hono without a database, JavaScript (the smallest layout)."""
    return ProjectConfig(
        name="demo",
        framework=Framework.HONO,
        database=Database.NONE,
        language=Language.JS,
    )


# ---------------------------------------------------------------------------
# Install loop doubles
# ---------------------------------------------------------------------------


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with a near-zero retry delay so loops finish instantly."""
    return Settings(retry_delay_ms=5, probe_timeout_ms=100, package_manager="npm")


class ScriptedProbe:
    """Returns the queued reachability answers in order, then repeats the last."""

    def __init__(self, *answers: bool) -> None:
        self.answers = list(answers) or [True]
        self.calls = 0

    async def is_reachable(self, timeout_ms: int | None = None) -> bool:
        index = min(self.calls, len(self.answers) - 1)
        self.calls += 1
        return self.answers[index]


class PressedKeyListener(CancelKeyListener):
    """A listener that behaves as if *keys* were typed as soon as it is armed."""

    def __init__(self, keys: str) -> None:
        super().__init__()
        self.keys = keys
        self.arm_count = 0

    def arm(self) -> None:
        self.arm_count += 1
        self.feed(self.keys)


@pytest.fixture
def scripted_probe():
    """Factory for ``ScriptedProbe`` instances."""
    return ScriptedProbe


@pytest.fixture
def pressed_key_listener():
    """Factory for ``PressedKeyListener`` instances."""
    return PressedKeyListener


@pytest.fixture
def ok_runner() -> AsyncMock:
    """Package-manager runner that always succeeds."""
    return AsyncMock(return_value=(0, "", ""))


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """An existing project directory to install into."""
    path = tmp_path / "demo"
    path.mkdir()
    return path
