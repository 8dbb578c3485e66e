"""microfed scaffolder -- materializes applications from the Template Store.

Quick usage::

    from microfed.config import Config
    from microfed.models import ApplicationSpec, FederationEntry
    from microfed.scaffolder import ProjectMaterializer

    materializer = ProjectMaterializer(Config(skip_install=True))
    spec = ApplicationSpec.remote("widget", 1)
    await materializer.materialize(
        spec, "/tmp/widget_1", FederationEntry(name=spec.name, port=spec.port)
    )
"""

from microfed.scaffolder.materializer import ProjectMaterializer
from microfed.scaffolder.templates import TemplateRenderer

__all__ = [
    "ProjectMaterializer",
    "TemplateRenderer",
]
