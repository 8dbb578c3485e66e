"""Error taxonomy for workspace generation.

Every error raised while validating a request, materializing an application
or reading the setup ledger derives from :class:`ScaffoldError`, so callers
can isolate failures per application with a single ``except`` clause.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Base class for all generation failures.

    Attributes:
        application: Name of the application being generated, if any.
        step: Short label of the materialization step that failed.
    """

    def __init__(self, message: str, application: str = "", step: str = "") -> None:
        self.application = application
        self.step = step
        super().__init__(message)

    @property
    def kind(self) -> str:
        """Error kind reported in a ``GenerationReport``."""
        return type(self).__name__


class InvalidRequest(ScaffoldError):
    """Raised for bad user input, always before any filesystem mutation."""


class TemplateMissing(ScaffoldError):
    """Raised when the Template Store lacks a ``host-app``/``remote-app`` subdirectory."""


class TemplateNotFound(ScaffoldError):
    """Raised when a single template file cannot be found."""


class TemplateSyntaxError(ScaffoldError):
    """Raised when a template cannot be parsed or interpolated."""


class CopyError(ScaffoldError):
    """Raised when the template tree cannot be copied to the target directory."""


class ConfigRenderError(ScaffoldError):
    """Raised when the bundler config or package manifest cannot be produced."""


class DependencyInstallFailed(ScaffoldError):
    """Raised when the package manager exits with a non-zero code."""

    def __init__(
        self,
        message: str,
        application: str = "",
        step: str = "install",
        returncode: int = 1,
    ) -> None:
        self.returncode = returncode
        super().__init__(message, application=application, step=step)


class HostNotFound(ScaffoldError):
    """Raised when ``add-remote-to-host`` cannot find the host directory."""


class LedgerCorrupt(ScaffoldError):
    """Raised when the setup ledger file cannot be parsed."""
