"""Shared pytest fixtures for the microfed test suite.

Provides reusable fixtures for:
- Temporary workspaces and ledger files
- A private copy of the bundled Template Store (so tests can break it)
- A configuration that never runs the real package manager
- A recording fake installer and ready-made orchestrators
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

import microfed
from microfed.config import Config
from microfed.ledger import SetupLedger
from microfed.orchestrator import GenerationOrchestrator, decline_overwrite
from microfed.scaffolder.materializer import ProjectMaterializer

BUNDLED_TEMPLATES = Path(microfed.__file__).parent / "templates"


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Empty directory the applications are generated in."""
    directory = tmp_path / "workspace"
    directory.mkdir()
    yield directory


@pytest.fixture
def template_store(tmp_path: Path) -> Path:
    """Writable copy of the bundled Template Store."""
    store = tmp_path / "templates"
    shutil.copytree(BUNDLED_TEMPLATES, store)
    yield store


@pytest.fixture
def ledger_path(workspace: Path) -> Path:
    return workspace / "microfrontend-setup.json"


# ---------------------------------------------------------------------------
# Configuration & collaborators
# ---------------------------------------------------------------------------

@pytest.fixture
def config(workspace: Path, template_store: Path) -> Config:
    """Configuration rooted in the temporary workspace with install disabled."""
    return Config(workspace=workspace, templates_dir=template_store, skip_install=True)


@pytest.fixture
def installer() -> AsyncMock:
    """Fake dependency installer that always succeeds."""
    return AsyncMock(return_value=(0, "", ""))


@pytest.fixture
def install_config(config: Config) -> Config:
    """Same as ``config`` but with the install step enabled."""
    return config.model_copy(update={"skip_install": False})


@pytest.fixture
def materializer(config: Config, installer: AsyncMock) -> ProjectMaterializer:
    return ProjectMaterializer(config, installer=installer)


@pytest.fixture
def ledger(ledger_path: Path) -> SetupLedger:
    return SetupLedger(ledger_path)


@pytest.fixture
def make_orchestrator(
    config: Config, installer: AsyncMock
) -> Callable[..., GenerationOrchestrator]:
    """Factory building an orchestrator with a chosen conflict policy."""

    def _make(policy=decline_overwrite, **overrides: Any) -> GenerationOrchestrator:
        cfg = config.model_copy(update=overrides) if overrides else config
        return GenerationOrchestrator(
            cfg,
            materializer=ProjectMaterializer(cfg, installer=installer),
            conflict_policy=policy,
        )

    return _make


@pytest.fixture
def sample_request() -> dict[str, Any]:
    return {
        "host_application_name": "shell",
        "remote_application_name": "widget",
        "remote_application_count": 3,
        "build_tool": "webpack",
    }
