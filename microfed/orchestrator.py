"""Generation orchestrator.

Sequences the creation of one host and N remotes:

1. Validate the request before touching the filesystem.
2. Host: resolve its directory, ask the conflict policy if it already
   exists, then materialize it with the full remote list.
3. Remotes ``1..N``: same per-application flow, each with its own
   ``{name, port}`` record.
4. Append a ``SetupRecord`` to the setup ledger.

Every application moves through ``Pending -> (exists? -> confirm) ->
{Skipped | Overwriting -> Pending} -> Materializing -> {Created | Failed}``.
Failures are isolated per application and collected in a
``GenerationReport``; siblings always run.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any, Callable, Mapping, Optional, Union

from pydantic import ValidationError

from microfed.config import Config
from microfed.errors import CopyError, HostNotFound, InvalidRequest, ScaffoldError
from microfed.ledger import SetupLedger
from microfed.models import (
    ApplicationOutcome,
    ApplicationSpec,
    ApplicationStatus,
    BuildTool,
    FederationEntry,
    GenerationReport,
    GenerationRequest,
    SetupRecord,
    federation_entries,
)
from microfed.scaffolder.materializer import FederationContext, ProjectMaterializer
from microfed.utils import print_error, print_info, print_success, print_warning

ConflictPolicy = Callable[[ApplicationSpec, Path], bool]

REMOTE_LIMIT_MESSAGE = (
    "You have reached the maximum number of remote applications for this host. "
    "No changes were made."
)


def decline_overwrite(spec: ApplicationSpec, target: Path) -> bool:
    """Conflict policy that keeps every existing directory."""
    return False


def confirm_overwrite(spec: ApplicationSpec, target: Path) -> bool:
    """Conflict policy that replaces every existing directory."""
    return True


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class GenerationOrchestrator:
    """Creates host and remote applications and records each run.

    Attributes:
        config: Global configuration (workspace, ports, limits).
        materializer: Produces a single application directory.
        ledger: Setup ledger appended to after every run.
        conflict_policy: ``policy(spec, target_dir) -> bool`` deciding whether
            an existing directory is removed and recreated.  Defaults to
            declining, so nothing is ever overwritten without an explicit
            policy.
    """

    def __init__(
        self,
        config: Config,
        materializer: ProjectMaterializer | None = None,
        ledger: SetupLedger | None = None,
        conflict_policy: ConflictPolicy | None = None,
    ) -> None:
        self.config = config
        self.materializer = materializer or ProjectMaterializer(config)
        self.ledger = ledger or SetupLedger(config.ledger_path)
        self.conflict_policy = conflict_policy or decline_overwrite

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_request(
        self, request: Union[GenerationRequest, Mapping[str, Any]]
    ) -> GenerationRequest:
        """Return a validated request or raise :class:`InvalidRequest`."""
        try:
            if isinstance(request, GenerationRequest):
                validated = request
            else:
                validated = GenerationRequest.model_validate(dict(request))
        except ValidationError as exc:
            raise InvalidRequest(_first_error(exc), step="validate") from exc

        self._check_count(validated.remote_application_count)
        return validated

    def _check_count(self, count: int) -> None:
        limit = self.config.max_remote_count
        if not 1 <= count <= limit:
            raise InvalidRequest(
                f"Remote application count must be between 1 and {limit}, got {count}",
                step="validate",
            )

    # ------------------------------------------------------------------
    # create
    # ------------------------------------------------------------------

    async def generate(
        self,
        request: Union[GenerationRequest, Mapping[str, Any]],
        *,
        record: bool = True,
    ) -> GenerationReport:
        """Create the host and every remote described by *request*.

        Args:
            request: What to generate.  Mappings are validated into a
                ``GenerationRequest``.
            record: Append a ``SetupRecord`` to the ledger afterwards.

        Returns:
            Per-application outcomes, host first then remotes in index order.

        Raises:
            InvalidRequest: Before any filesystem change.
        """
        request = self.validate_request(request)
        base_port = self.config.base_port
        count = request.remote_application_count
        report = GenerationReport()

        host = ApplicationSpec.host(request.host_application_name, base_port)
        remotes = federation_entries(
            request.remote_application_name, range(1, count + 1), base_port
        )
        await self._create_application(host, remotes, request.build_tool, report)

        for index in range(1, count + 1):
            remote = ApplicationSpec.remote(request.remote_application_name, index, base_port)
            await self._create_application(
                remote,
                FederationEntry(name=remote.name, port=remote.port),
                request.build_tool,
                report,
            )

        if record:
            await self.ledger.append(SetupRecord.from_request(request))
        return report

    # ------------------------------------------------------------------
    # add-remote-to-host
    # ------------------------------------------------------------------

    async def add_remotes(
        self,
        last: SetupRecord,
        additional_count: int,
        *,
        update_host: bool = False,
        record: bool = True,
    ) -> tuple[GenerationReport, SetupRecord]:
        """Create *additional_count* more remotes for the host in *last*.

        New remotes are numbered from ``last.remote_application_count + 1``;
        existing remotes are never renumbered.  The returned record carries
        the cumulative count, which reserves every attempted index even if
        that remote was skipped or failed.

        Raises:
            InvalidRequest: The host already has more remotes than allowed,
                *additional_count* is out of range, a recorded name is not a
                valid application name, or a new remote would reuse the
                host's directory.
            HostNotFound: The host directory no longer exists.
        """
        if last.remote_application_count > self.config.max_remote_count:
            raise InvalidRequest(REMOTE_LIMIT_MESSAGE, step="validate")
        self._check_count(additional_count)

        base_port = self.config.base_port
        first = last.remote_application_count + 1
        total = last.remote_application_count + additional_count

        # Ledger records do not enforce application-name rules.
        try:
            host = ApplicationSpec.host(last.host_application_name, base_port)
            remotes = [
                ApplicationSpec.remote(last.remote_application_name, index, base_port)
                for index in range(first, total + 1)
            ]
        except ValidationError as exc:
            raise InvalidRequest(
                f"The last setup record cannot be extended: {_first_error(exc)}",
                step="validate",
            ) from exc

        for remote in remotes:
            if remote.name == host.name:
                raise InvalidRequest(
                    f"Remote application {remote.name} would reuse the host "
                    "application's directory",
                    application=remote.name,
                    step="validate",
                )

        host_dir = self.config.target_dir(host.name)
        if not host_dir.is_dir():
            raise HostNotFound(
                f"Host application directory not found: {host_dir}",
                application=host.name,
                step="validate",
            )

        report = GenerationReport()
        for remote in remotes:
            await self._create_application(
                remote,
                FederationEntry(name=remote.name, port=remote.port),
                last.build_tool,
                report,
            )

        if update_host:
            await self._refresh_host(host, last, total, report)

        updated = last.model_copy(update={"remote_application_count": total})
        if record:
            await self.ledger.append(updated)
        return report, updated

    async def _refresh_host(
        self,
        host: ApplicationSpec,
        last: SetupRecord,
        total: int,
        report: GenerationReport,
    ) -> None:
        target = self.config.target_dir(host.name)
        remotes = federation_entries(
            last.remote_application_name, range(1, total + 1), self.config.base_port
        )
        try:
            await self.materializer.refresh_host(host, target, remotes, last.build_tool)
        except (ScaffoldError, OSError) as exc:
            print_error(f"Failed to update host application {host.name}: {exc}")
            report.add(_outcome(host, target, ApplicationStatus.FAILED, exc))
            return
        print_success(f"Updated {host.name} to load {total} remote application(s).")

    # ------------------------------------------------------------------
    # Per-application flow
    # ------------------------------------------------------------------

    async def _create_application(
        self,
        spec: ApplicationSpec,
        federation: FederationContext,
        build_tool: BuildTool,
        report: GenerationReport,
    ) -> None:
        target = self.config.target_dir(spec.name)
        role = spec.role.value.capitalize()

        if target.exists():
            if not self.conflict_policy(spec, target):
                print_warning(f"{role} directory already exists at {target}. Skipping.")
                report.add(_outcome(
                    spec, target, ApplicationStatus.SKIPPED,
                    message="Directory already exists; overwrite declined",
                ))
                return
            try:
                await asyncio.to_thread(_remove_path, target)
            except OSError as exc:
                error = CopyError(
                    f"Could not remove existing directory {target}: {exc}",
                    application=spec.name,
                    step="overwrite",
                )
                print_error(f"Failed to create {spec.role.value} application {spec.name}: {error}")
                report.add(_outcome(spec, target, ApplicationStatus.FAILED, error))
                return

        try:
            await self.materializer.materialize(spec, target, federation, build_tool)
        except (ScaffoldError, OSError) as exc:
            print_error(f"Failed to create {spec.role.value} application {spec.name}: {exc}")
            report.add(_outcome(spec, target, ApplicationStatus.FAILED, exc))
            return

        print_success(f"{spec.name} created successfully at {target}")
        print_info(f'Run "cd {spec.name} && npm start" to start the {spec.name} application.')
        report.add(_outcome(spec, target, ApplicationStatus.CREATED))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _outcome(
    spec: ApplicationSpec,
    target: Path,
    status: ApplicationStatus,
    error: Optional[Exception] = None,
    message: str = "",
) -> ApplicationOutcome:
    error_kind: Optional[str] = None
    if error is not None:
        error_kind = error.kind if isinstance(error, ScaffoldError) else type(error).__name__
        message = message or str(error)
    return ApplicationOutcome(
        name=spec.name,
        role=spec.role,
        port=spec.port,
        target_dir=target,
        status=status,
        error_kind=error_kind,
        message=message,
    )


def _remove_path(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    message = str(error.get("msg", "invalid value"))
    # Pydantic prefixes messages raised from validators.
    message = message.removeprefix("Value error, ")
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {message}" if location else message
