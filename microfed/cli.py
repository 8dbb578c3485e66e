"""microfed command-line interface.

Usage::

    microfed create
    microfed create --host-name shell --remote-name widget --count 3 --tool vite
    microfed add-remote-to-host --count 2 --update-host

Every option that is omitted is asked for interactively.  Failures are
printed and never turned into a traceback; handled runs exit with status 0.
"""

from __future__ import annotations

import argparse
import asyncio
import time
from pathlib import Path
from typing import Any, Optional

from rich.prompt import Confirm, IntPrompt, Prompt

from microfed import __version__
from microfed.config import Config
from microfed.errors import ScaffoldError
from microfed.models import ApplicationSpec, BuildTool, GenerationReport
from microfed.orchestrator import (
    REMOTE_LIMIT_MESSAGE,
    ConflictPolicy,
    GenerationOrchestrator,
    confirm_overwrite,
    decline_overwrite,
)
from microfed.utils import (
    console,
    format_duration,
    print_error,
    print_info,
    print_success,
    print_summary_table,
    print_warning,
)


# ---------------------------------------------------------------------------
# Interactive prompts
# ---------------------------------------------------------------------------


def ask_name(label: str) -> str:
    """Ask for a non-empty application name."""
    while True:
        value = Prompt.ask(f"Enter the name of your {label} application")
        if value and value.strip():
            return value.strip()
        print_error(f"{label} application name is required!")


def ask_count(message: str, limit: int) -> int:
    """Ask for an integer between 1 and *limit*."""
    while True:
        value = IntPrompt.ask(f"{message} (1-{limit})")
        if 1 <= value <= limit:
            return value
        print_error(f"Please enter a number between 1 and {limit}.")


def ask_build_tool() -> BuildTool:
    choice = Prompt.ask(
        "Which build tool should the applications use?",
        choices=[tool.value for tool in BuildTool],
        default=BuildTool.WEBPACK.value,
    )
    return BuildTool(choice)


def prompt_overwrite(spec: ApplicationSpec, target: Path) -> bool:
    """Conflict policy that asks the user."""
    return Confirm.ask(
        f"{spec.role.value.capitalize()} directory {target} already exists. "
        "Remove it and create it again?",
        default=False,
    )


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def run_create(args: argparse.Namespace, orchestrator: GenerationOrchestrator) -> None:
    """Prompt for the missing answers and generate host + remotes."""
    answers: dict[str, Any] = {
        "host_application_name": args.host_name or ask_name("Host"),
        "remote_application_name": args.remote_name or ask_name("Remote"),
        "remote_application_count": (
            args.count
            if args.count is not None
            else ask_count("Enter the count of microfrontends", orchestrator.config.max_remote_count)
        ),
        "build_tool": args.tool or ask_build_tool(),
    }

    started = time.monotonic()
    try:
        report = asyncio.run(orchestrator.generate(answers))
    except ScaffoldError as exc:
        print_error(f"Error while setting up microfrontends: {exc}")
        return

    print_report(report, title="Microfrontend setup")
    print_info(f"Finished in {format_duration(time.monotonic() - started)}.")


def run_add_remote(args: argparse.Namespace, orchestrator: GenerationOrchestrator) -> None:
    """Add remotes to the host recorded in the last ledger entry."""
    last = orchestrator.ledger.last_record()
    if last is None:
        print_warning("No previous configuration found. Run 'microfed create' first.")
        return
    if last.remote_application_count > orchestrator.config.max_remote_count:
        print_error(REMOTE_LIMIT_MESSAGE)
        return

    print_info(
        f"Adding remote applications to {last.host_application_name} "
        f"(currently {last.remote_application_count}, build tool {last.build_tool.label})."
    )
    count = (
        args.count
        if args.count is not None
        else ask_count("How many remote applications do you want to add?",
                       orchestrator.config.max_remote_count)
    )

    started = time.monotonic()
    try:
        report, updated = asyncio.run(
            orchestrator.add_remotes(last, count, update_host=args.update_host)
        )
    except ScaffoldError as exc:
        print_error(f"Error while adding remote applications: {exc}")
        return

    print_report(report, title="Added remote applications")
    print_success(
        f"{updated.host_application_name} now has "
        f"{updated.remote_application_count} remote application(s)."
    )
    print_info(f"Finished in {format_duration(time.monotonic() - started)}.")


def print_report(report: GenerationReport, title: str) -> None:
    rows = [
        (
            outcome.name,
            outcome.role.value,
            str(outcome.port),
            outcome.status.value,
            outcome.error_kind or outcome.message or str(outcome.target_dir),
        )
        for outcome in report.outcomes
    ]
    print_summary_table(rows, ("Application", "Role", "Port", "Status", "Details"), title=title)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="microfed",
        description="Scaffold module-federation micro-frontend workspaces",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  microfed create\n"
            "  microfed create --host-name shell --remote-name widget --count 3\n"
            "  microfed add-remote-to-host --count 2\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--workspace", "-w",
        type=Path,
        default=None,
        help="Directory the applications are generated in (default: current directory)",
    )
    common.add_argument("--ledger", type=Path, default=None, help="Setup ledger JSON file")
    common.add_argument("--templates", type=Path, default=None, help="Template Store directory")
    common.add_argument(
        "--skip-install",
        action="store_true",
        help="Do not run the package manager in generated applications",
    )
    overwrite = common.add_mutually_exclusive_group()
    overwrite.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Remove and recreate existing application directories without asking",
    )
    overwrite.add_argument(
        "--no-overwrite",
        action="store_true",
        help="Skip every application whose directory already exists",
    )

    subcommands = parser.add_subparsers(dest="command", metavar="COMMAND")

    create = subcommands.add_parser(
        "create", parents=[common], help="Create a new microfrontend project"
    )
    create.add_argument("--host-name", default=None, help="Host application name")
    create.add_argument("--remote-name", default=None, help="Remote application base name")
    create.add_argument("--count", type=int, default=None, help="Number of remotes (1-10)")
    create.add_argument(
        "--tool",
        choices=[tool.value for tool in BuildTool],
        default=None,
        help="Build tool (default: webpack)",
    )

    add_remote = subcommands.add_parser(
        "add-remote-to-host",
        parents=[common],
        help="Add remote applications to the last created host",
    )
    add_remote.add_argument("--count", type=int, default=None, help="Remotes to add (1-10)")
    add_remote.add_argument(
        "--update-host",
        action="store_true",
        help="Re-render the host's entry point and bundler config with every remote",
    )
    return parser


def _conflict_policy(args: argparse.Namespace) -> ConflictPolicy:
    if args.yes:
        return confirm_overwrite
    if args.no_overwrite:
        return decline_overwrite
    return prompt_overwrite


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point for ``microfed`` and ``python -m microfed``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 0

    config = Config.from_env(
        workspace=args.workspace,
        templates_dir=args.templates,
        ledger_path=args.ledger,
        skip_install=True if args.skip_install else None,
    )
    orchestrator = GenerationOrchestrator(config, conflict_policy=_conflict_policy(args))

    try:
        if args.command == "create":
            run_create(args, orchestrator)
        else:
            run_add_remote(args, orchestrator)
    except KeyboardInterrupt:
        console.print()
        print_error("Aborted.")
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
