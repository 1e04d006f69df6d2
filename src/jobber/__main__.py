"""Module entrypoint for ``python -m jobber``."""

from __future__ import annotations

from jobber.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
