"""cza scaffolder -- materializes remote templates into project directories.

Quick usage::

    from cza.scaffolder import Materializer

    materializer = Materializer()
    project_path = await materializer.generate(
        "https://github.com/sripwoud/cza",
        "templates/noir",
        {"project_name": "my-zk-app", "author": "Ada"},
        "my-zk-app",
    )
"""

from cza.scaffolder.fetcher import MaterializeError, TemplateFetcher
from cza.scaffolder.generator import Materializer
from cza.scaffolder.templates import TemplateRenderer

__all__ = [
    "MaterializeError",
    "Materializer",
    "TemplateFetcher",
    "TemplateRenderer",
]
