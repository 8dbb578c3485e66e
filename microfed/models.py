"""Pydantic v2 models for workspace generation.

Defines the request/record types exchanged between the CLI, the
orchestrator and the setup ledger, plus the per-application report returned
after every run.
"""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
    field_validator,
    model_validator,
)

MAX_REMOTE_COUNT = 10
DEFAULT_BASE_PORT = 3000

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]*$")


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ApplicationRole(str, Enum):
    """Role an application plays in the federation."""
    HOST = "host"
    REMOTE = "remote"


class TemplateKind(str, Enum):
    """Template Store subdirectory an application is copied from."""
    HOST_APP = "host-app"
    REMOTE_APP = "remote-app"


class BuildTool(str, Enum):
    """Bundler used by the generated applications."""
    WEBPACK = "webpack"
    VITE = "vite"

    @classmethod
    def _missing_(cls, value: object) -> Optional["BuildTool"]:
        # Ledger files store the display label ("Webpack"), the CLI the value.
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value == lowered:
                    return member
        return None

    @property
    def label(self) -> str:
        return self.value.capitalize()


class ApplicationStatus(str, Enum):
    """Terminal state of one application in a generation run."""
    CREATED = "created"
    SKIPPED = "skipped"
    FAILED = "failed"


def _check_name(value: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError(f"{label} is required")
    if not _SAFE_NAME.match(value):
        raise ValueError(
            f"{label} '{value}' may only contain letters, digits, '.', '_' and '-'"
        )
    return value


def remote_name(base_name: str, index: int) -> str:
    """Return the directory/application name of the remote at 1-based *index*."""
    return f"{base_name}_{index}"


def remote_port(index: int, base_port: int = DEFAULT_BASE_PORT) -> int:
    """Return the dev-server port of the remote at 1-based *index*."""
    return base_port + index


# ---------------------------------------------------------------------------
# Application & federation context
# ---------------------------------------------------------------------------

class ApplicationSpec(BaseModel):
    """One application to materialize. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Application and directory name")
    role: ApplicationRole
    port: int = Field(..., ge=1, le=65535)
    template_kind: TemplateKind

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return _check_name(value, "Application name")

    @classmethod
    def host(cls, name: str, port: int = DEFAULT_BASE_PORT) -> "ApplicationSpec":
        return cls(
            name=name,
            role=ApplicationRole.HOST,
            port=port,
            template_kind=TemplateKind.HOST_APP,
        )

    @classmethod
    def remote(
        cls, base_name: str, index: int, base_port: int = DEFAULT_BASE_PORT
    ) -> "ApplicationSpec":
        return cls(
            name=remote_name(base_name, index),
            role=ApplicationRole.REMOTE,
            port=remote_port(index, base_port),
            template_kind=TemplateKind.REMOTE_APP,
        )

    @property
    def is_host(self) -> bool:
        return self.role is ApplicationRole.HOST


class FederationEntry(BaseModel):
    """A ``{name, port}`` pair consumed by the bundler-config templates."""

    model_config = ConfigDict(frozen=True)

    name: str
    port: int


def federation_entries(
    base_name: str, indices: Iterable[int], base_port: int = DEFAULT_BASE_PORT
) -> list[FederationEntry]:
    """Build the ordered host federation list for the given remote indices."""
    return [
        FederationEntry(name=remote_name(base_name, i), port=remote_port(i, base_port))
        for i in indices
    ]


# ---------------------------------------------------------------------------
# Requests & persisted records
# ---------------------------------------------------------------------------

class GenerationRequest(BaseModel):
    """Parameters of one ``create`` run."""

    host_application_name: str
    remote_application_name: str
    remote_application_count: int = Field(..., ge=1, le=MAX_REMOTE_COUNT)
    build_tool: BuildTool = Field(default=BuildTool.WEBPACK)

    @field_validator("host_application_name")
    @classmethod
    def _validate_host(cls, value: str) -> str:
        return _check_name(value, "Host application name")

    @field_validator("remote_application_name")
    @classmethod
    def _validate_remote(cls, value: str) -> str:
        return _check_name(value, "Remote application name")

    @field_validator("build_tool", mode="before")
    @classmethod
    def _coerce_tool(cls, value: Any) -> Any:
        return BuildTool(value) if isinstance(value, str) else value

    @model_validator(mode="after")
    def _no_directory_clash(self) -> "GenerationRequest":
        clashing = {
            remote_name(self.remote_application_name, i)
            for i in range(1, self.remote_application_count + 1)
        }
        if self.host_application_name in clashing:
            raise ValueError(
                f"Host application name '{self.host_application_name}' collides "
                "with a remote application directory"
            )
        return self


class SetupRecord(BaseModel):
    """One entry of the setup ledger.

    ``remote_application_count`` is the cumulative number of remotes ever
    created for the host, so it is intentionally not capped.
    """

    model_config = ConfigDict(populate_by_name=True)

    host_application_name: str = Field(..., alias="hostApplicationName", min_length=1)
    remote_application_name: str = Field(..., alias="remoteApplicationName", min_length=1)
    remote_application_count: int = Field(..., alias="remoteApplicationCount", ge=0)
    build_tool: BuildTool = Field(default=BuildTool.WEBPACK, alias="microfrontendTool")

    @field_validator("build_tool", mode="before")
    @classmethod
    def _coerce_tool(cls, value: Any) -> Any:
        return BuildTool(value) if isinstance(value, str) else value

    @field_serializer("build_tool")
    def _serialize_tool(self, tool: BuildTool) -> str:
        return tool.label

    @classmethod
    def from_request(cls, request: GenerationRequest) -> "SetupRecord":
        return cls(
            host_application_name=request.host_application_name,
            remote_application_name=request.remote_application_name,
            remote_application_count=request.remote_application_count,
            build_tool=request.build_tool,
        )

    def to_json_dict(self) -> dict[str, Any]:
        """Return the camelCase mapping stored in the ledger file."""
        return self.model_dump(by_alias=True, mode="json")


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------

class ApplicationOutcome(BaseModel):
    """What happened to one application during a run."""

    name: str
    role: ApplicationRole
    port: int
    target_dir: Path
    status: ApplicationStatus
    error_kind: Optional[str] = None
    message: str = ""


class GenerationReport(BaseModel):
    """Ordered per-application outcomes of a ``create`` or ``add-remote`` run."""

    outcomes: list[ApplicationOutcome] = Field(default_factory=list)

    def add(self, outcome: ApplicationOutcome) -> None:
        self.outcomes.append(outcome)

    def _with_status(self, status: ApplicationStatus) -> list[ApplicationOutcome]:
        return [o for o in self.outcomes if o.status is status]

    @property
    def created(self) -> list[ApplicationOutcome]:
        return self._with_status(ApplicationStatus.CREATED)

    @property
    def skipped(self) -> list[ApplicationOutcome]:
        return self._with_status(ApplicationStatus.SKIPPED)

    @property
    def failed(self) -> list[ApplicationOutcome]:
        return self._with_status(ApplicationStatus.FAILED)

    @property
    def ok(self) -> bool:
        """``True`` when no application failed."""
        return not self.failed

    def outcome_for(self, name: str) -> Optional[ApplicationOutcome]:
        for outcome in self.outcomes:
            if outcome.name == name:
                return outcome
        return None
