"""Project materialization.

Turns one ``ApplicationSpec`` into a concrete, ready-to-run directory: the
matching Template Store subtree is copied verbatim, placeholder-only files are
dropped, the entry point (hosts only) and the bundler config are rendered with
the federation context, the package manifest is pointed at the selected build
tool, and dependencies are installed.

Steps run strictly in order and nothing is rolled back on failure: a
partially-populated directory is left in place for manual recovery.
"""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path
from typing import Any, Awaitable, Callable, Union

from microfed.config import Config
from microfed.errors import (
    ConfigRenderError,
    CopyError,
    DependencyInstallFailed,
    ScaffoldError,
    TemplateMissing,
)
from microfed.models import ApplicationSpec, BuildTool, FederationEntry
from microfed.utils import load_json, print_info, run_command, write_json

from .templates import TemplateRenderer


# ---------------------------------------------------------------------------
# Template Store layout
# ---------------------------------------------------------------------------

ENTRY_TEMPLATE = "src/index.jsx.j2"
ENTRY_OUTPUT = "src/index.jsx"

BUNDLER_TEMPLATES: dict[BuildTool, tuple[str, str]] = {
    BuildTool.WEBPACK: ("webpack.config.js.j2", "webpack.config.js"),
    BuildTool.VITE: ("vite.config.js.j2", "vite.config.js"),
}

# Files that only exist to be rendered and never belong in a generated app.
PLACEHOLDER_FILES: tuple[str, ...] = (
    ENTRY_TEMPLATE,
    *(template for template, _ in BUNDLER_TEMPLATES.values()),
)

MANIFEST = "package.json"

TOOL_SCRIPTS: dict[BuildTool, dict[str, str]] = {
    BuildTool.WEBPACK: {
        "start": "webpack serve --mode development",
        "build": "webpack --mode production",
    },
    BuildTool.VITE: {
        "start": "vite",
        "build": "vite build",
    },
}

TOOL_DEV_DEPENDENCIES: dict[BuildTool, frozenset[str]] = {
    BuildTool.WEBPACK: frozenset({
        "webpack",
        "webpack-cli",
        "webpack-dev-server",
        "html-webpack-plugin",
        "babel-loader",
        "@babel/core",
        "@babel/preset-env",
        "@babel/preset-react",
    }),
    BuildTool.VITE: frozenset({
        "vite",
        "@vitejs/plugin-react",
        "@originjs/vite-plugin-federation",
    }),
}

FederationContext = Union[list[FederationEntry], FederationEntry]
Installer = Callable[[Path], Awaitable[tuple[int, str, str]]]


# ---------------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------------


class ProjectMaterializer:
    """Produces one application directory from the Template Store.

    Args:
        config: Global configuration (template root, install command).
        renderer: Renderer rooted at the Template Store.  Defaults to one
            rooted at ``config.templates_dir``.
        installer: Coroutine ``installer(target_dir) -> (returncode, stdout,
            stderr)`` used for the dependency-install step.  Defaults to
            running ``config.install_command`` in *target_dir*.
    """

    def __init__(
        self,
        config: Config,
        renderer: TemplateRenderer | None = None,
        installer: Installer | None = None,
    ) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer(config.templates_dir)
        self.installer = installer or self._run_install_command

    # -- Public API --------------------------------------------------------

    async def materialize(
        self,
        spec: ApplicationSpec,
        target_dir: str | Path,
        federation: FederationContext,
        build_tool: BuildTool = BuildTool.WEBPACK,
    ) -> Path:
        """Create the application described by *spec* inside *target_dir*.

        Args:
            spec: The application to generate.
            target_dir: Directory to populate.  Callers resolve conflicts
                before calling; existing files are overwritten.
            federation: Ordered remote list for a host, a single
                ``{name, port}`` record for a remote.
            build_tool: Selects the bundler-config template and manifest
                scripts.

        Returns:
            The populated directory.

        Raises:
            TemplateMissing, CopyError, TemplateNotFound, TemplateSyntaxError,
            ConfigRenderError, DependencyInstallFailed.
        """
        target = Path(target_dir)
        print_info(f"Creating {spec.name}...")

        # 1. Resolve the Template Store subdirectory
        template_dir = self.template_dir_for(spec)

        # 2. Copy the template subtree verbatim
        await self._copy_tree(spec, template_dir, target)

        # 3. Drop placeholder-only files from the copy
        await asyncio.to_thread(remove_placeholders, target)

        context = build_context(spec, federation, build_tool)

        # 4. Host entry point
        if spec.is_host:
            await self._render_entry(spec, target, context)

        # 5. Bundler config
        await self._render_bundler_config(spec, target, context, build_tool)

        # 6. Package manifest
        await asyncio.to_thread(rewrite_manifest, spec, target, build_tool)

        # 7. Dependencies
        await self._install(spec, target)

        return target

    async def refresh_host(
        self,
        spec: ApplicationSpec,
        target_dir: str | Path,
        federation: list[FederationEntry],
        build_tool: BuildTool = BuildTool.WEBPACK,
    ) -> None:
        """Re-render an existing host's entry point and bundler config.

        Used after remotes were added so the host references the cumulative
        remote list.  No files are copied and nothing is installed.
        """
        target = Path(target_dir)
        self.template_dir_for(spec)
        context = build_context(spec, federation, build_tool)
        await self._render_entry(spec, target, context)
        await self._render_bundler_config(spec, target, context, build_tool)

    def template_dir_for(self, spec: ApplicationSpec) -> Path:
        """Return the Template Store subdirectory for *spec*.

        Raises:
            TemplateMissing: The subdirectory does not exist.
        """
        if spec.is_host:
            template_dir = self.config.host_template_dir
        else:
            template_dir = self.config.remote_template_dir
        if not template_dir.is_dir():
            raise TemplateMissing(
                f"Missing required template subdirectory: {spec.template_kind.value}. "
                f"Ensure it exists inside {self.config.templates_dir}.",
                application=spec.name,
                step="resolve-template",
            )
        return template_dir

    # -- Steps -------------------------------------------------------------

    async def _copy_tree(self, spec: ApplicationSpec, source: Path, target: Path) -> None:
        try:
            await asyncio.to_thread(shutil.copytree, source, target, dirs_exist_ok=True)
        except OSError as exc:
            raise CopyError(
                f"Could not copy {source} to {target}: {exc}",
                application=spec.name,
                step="copy",
            ) from exc

    async def _render_entry(
        self, spec: ApplicationSpec, target: Path, context: dict[str, Any]
    ) -> None:
        template = f"{spec.template_kind.value}/{ENTRY_TEMPLATE}"
        try:
            await self.renderer.render_to_file(template, target / ENTRY_OUTPUT, context)
        except ScaffoldError as exc:
            exc.application = spec.name
            exc.step = "entry"
            raise

    async def _render_bundler_config(
        self,
        spec: ApplicationSpec,
        target: Path,
        context: dict[str, Any],
        build_tool: BuildTool,
    ) -> None:
        template_name, output_name = BUNDLER_TEMPLATES[build_tool]
        template = f"{spec.template_kind.value}/{template_name}"
        if not self.renderer.exists(template):
            raise ConfigRenderError(
                f"{build_tool.label} config template not found: "
                f"{self.renderer.template_dir / template}",
                application=spec.name,
                step="bundler-config",
            )
        try:
            await self.renderer.render_to_file(template, target / output_name, context)
        except (ScaffoldError, OSError) as exc:
            raise ConfigRenderError(
                f"Error generating {build_tool.label} configuration: {exc}",
                application=spec.name,
                step="bundler-config",
            ) from exc

    async def _install(self, spec: ApplicationSpec, target: Path) -> None:
        if self.config.skip_install:
            print_info(f"Skipping dependency installation for {spec.name}.")
            return

        print_info("Installing dependencies...")
        returncode, _stdout, stderr = await self.installer(target)
        if returncode != 0:
            detail = f": {stderr}" if stderr else ""
            raise DependencyInstallFailed(
                f"Failed to install dependencies for {spec.name}: "
                f"'{self.config.install_command}' exited with {returncode}{detail}",
                application=spec.name,
                returncode=returncode,
            )

    async def _run_install_command(self, target: Path) -> tuple[int, str, str]:
        return await run_command(
            self.config.install_command,
            cwd=target,
            timeout=self.config.install_timeout,
            capture=False,
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def build_context(
    spec: ApplicationSpec, federation: FederationContext, build_tool: BuildTool
) -> dict[str, Any]:
    """Build the template context for *spec*."""
    if isinstance(federation, FederationEntry):
        microfrontends: Any = federation.model_dump()
    else:
        microfrontends = [entry.model_dump() for entry in federation]
    return {
        "application": spec.model_dump(mode="json"),
        "microfrontends": microfrontends,
        "build_tool": build_tool.value,
    }


def remove_placeholders(target: Path) -> list[Path]:
    """Delete placeholder-only files from a copied tree.

    Files that are already absent are ignored.  Returns the removed paths.
    """
    removed: list[Path] = []
    for relative in PLACEHOLDER_FILES:
        path = target / relative
        if path.is_file():
            path.unlink()
            removed.append(path)
    return removed


def rewrite_manifest(spec: ApplicationSpec, target: Path, build_tool: BuildTool) -> dict[str, Any]:
    """Point ``package.json`` at *build_tool*.

    Sets the package name, replaces the ``start``/``build`` scripts and drops
    dev dependencies that only the other build tools need.

    Raises:
        ConfigRenderError: The manifest is missing, is not a JSON object, or
            its "scripts" entry is not an object.
    """
    manifest_path = target / MANIFEST
    try:
        manifest = load_json(manifest_path)
    except (OSError, ValueError) as exc:
        raise ConfigRenderError(
            f"Cannot update {manifest_path}: {exc}",
            application=spec.name,
            step="manifest",
        ) from exc

    manifest["name"] = spec.name.lower()
    scripts = manifest.setdefault("scripts", {})
    if not isinstance(scripts, dict):
        raise ConfigRenderError(
            f"Cannot update {manifest_path}: \"scripts\" must be a JSON object",
            application=spec.name,
            step="manifest",
        )
    scripts.update(TOOL_SCRIPTS[build_tool])

    unused = set().union(
        *(deps for tool, deps in TOOL_DEV_DEPENDENCIES.items() if tool is not build_tool)
    ) - TOOL_DEV_DEPENDENCIES[build_tool]
    dev_dependencies = manifest.get("devDependencies")
    if isinstance(dev_dependencies, dict):
        manifest["devDependencies"] = {
            name: version for name, version in dev_dependencies.items() if name not in unused
        }

    write_json(manifest, manifest_path)
    return manifest
