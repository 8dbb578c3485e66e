"""microfed -- scaffolds module-federation micro-frontend workspaces.

Generates one host application and N remote applications from the bundled
Template Store, wires them together through rendered bundler configuration,
and records every run in a setup ledger so more remotes can be added later.

Quick usage::

    import asyncio
    from microfed import Config, GenerationOrchestrator, GenerationRequest

    orchestrator = GenerationOrchestrator(Config(workspace="/tmp/shop"))
    report = asyncio.run(
        orchestrator.generate(
            GenerationRequest(
                host_application_name="shell",
                remote_application_name="widget",
                remote_application_count=3,
            )
        )
    )
"""

from microfed.config import Config
from microfed.ledger import SetupLedger
from microfed.models import (
    ApplicationOutcome,
    ApplicationSpec,
    BuildTool,
    GenerationReport,
    GenerationRequest,
    SetupRecord,
)
from microfed.orchestrator import GenerationOrchestrator

__all__ = [
    "ApplicationOutcome",
    "ApplicationSpec",
    "BuildTool",
    "Config",
    "GenerationOrchestrator",
    "GenerationReport",
    "GenerationRequest",
    "SetupLedger",
    "SetupRecord",
]

__version__ = "0.1.0"
