"""cza (create-zk-app) -- scaffold zero-knowledge application projects.

Resolves a template key against the bundled registry, materializes the
template into a new project directory, and runs the optional post-generation
steps (git init, dependency install, hook setup, editor launch).

Quick usage::

    cza list
    cza new my-zk-app --template noir-vite
    cd my-zk-app && mise run dev
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
