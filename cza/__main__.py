"""Entry point for ``python -m cza``."""

from cza.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
