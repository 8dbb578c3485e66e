"""microfed configuration.

Centralised, typed configuration for workspace generation. All settings use
a Pydantic v2 model so they are validated at construction time and can be
overridden from environment variables without boiler-plate.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from microfed.models import DEFAULT_BASE_PORT, MAX_REMOTE_COUNT

_DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"

_TRUTHY = {"1", "true", "yes", "on"}


class Config(BaseModel):
    """Global microfed configuration.

    Instances are created once by the CLI entry point (or by a test) and
    passed to the orchestrator, the materializer and the setup ledger.
    """

    workspace: Path = Field(
        default=Path("."), description="Directory the applications are generated in"
    )
    templates_dir: Path = Field(default=_DEFAULT_TEMPLATES_DIR)
    ledger_filename: str = Field(default="microfrontend-setup.json")
    ledger_path_override: Path | None = Field(default=None, alias="ledger_path")
    install_command: str = Field(default="npm install")
    install_timeout: int = Field(
        default=900, ge=10, description="Dependency install timeout in seconds"
    )
    skip_install: bool = Field(default=False)
    base_port: int = Field(default=DEFAULT_BASE_PORT, ge=1024, le=65000)
    max_remote_count: int = Field(default=MAX_REMOTE_COUNT, ge=1)

    model_config = ConfigDict(populate_by_name=True)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def ledger_path(self) -> Path:
        """Path to the setup ledger JSON file."""
        if self.ledger_path_override is not None:
            return self.ledger_path_override
        return self.workspace / self.ledger_filename

    @property
    def host_template_dir(self) -> Path:
        """Template Store subdirectory used for host applications."""
        return self.templates_dir / "host-app"

    @property
    def remote_template_dir(self) -> Path:
        """Template Store subdirectory used for remote applications."""
        return self.templates_dir / "remote-app"

    def target_dir(self, application_name: str) -> Path:
        """Directory an application named *application_name* is generated in."""
        return self.workspace / application_name

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            MICROFED_WORKSPACE, MICROFED_TEMPLATES_DIR, MICROFED_LEDGER_PATH,
            MICROFED_INSTALL_COMMAND, MICROFED_INSTALL_TIMEOUT,
            MICROFED_SKIP_INSTALL, MICROFED_BASE_PORT.

        Keyword arguments whose value is not ``None`` take precedence over the
        environment.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("MICROFED_WORKSPACE"):
            kwargs["workspace"] = Path(os.environ["MICROFED_WORKSPACE"])
        if os.environ.get("MICROFED_TEMPLATES_DIR"):
            kwargs["templates_dir"] = Path(os.environ["MICROFED_TEMPLATES_DIR"])
        if os.environ.get("MICROFED_LEDGER_PATH"):
            kwargs["ledger_path"] = Path(os.environ["MICROFED_LEDGER_PATH"])
        if os.environ.get("MICROFED_INSTALL_COMMAND"):
            kwargs["install_command"] = os.environ["MICROFED_INSTALL_COMMAND"]
        if os.environ.get("MICROFED_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = int(os.environ["MICROFED_INSTALL_TIMEOUT"])
        if os.environ.get("MICROFED_SKIP_INSTALL"):
            kwargs["skip_install"] = os.environ["MICROFED_SKIP_INSTALL"].strip().lower() in _TRUTHY
        if os.environ.get("MICROFED_BASE_PORT"):
            kwargs["base_port"] = int(os.environ["MICROFED_BASE_PORT"])

        kwargs.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**kwargs)
