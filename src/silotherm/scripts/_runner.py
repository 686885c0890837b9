"""Run repository CLI scripts (``scripts/*.py``) from console entrypoints."""

from __future__ import annotations

import runpy
import sys

from silotherm.utils.config import PROJECT_ROOT


def run_repo_script(script_name: str, argv: list[str] | None = None) -> None:
    """Execute ``scripts/<script_name>`` as ``__main__``.

    ``argv`` replaces ``sys.argv[1:]`` for the duration of the call; by
    default the entrypoint's own arguments are forwarded unchanged.
    """
    script_path = PROJECT_ROOT / "scripts" / script_name
    if not script_path.is_file():
        raise FileNotFoundError(f"Script not found: {script_path}")

    saved_argv = sys.argv
    if argv is not None:
        sys.argv = [str(script_path), *argv]
    try:
        runpy.run_path(str(script_path), run_name="__main__")
    finally:
        sys.argv = saved_argv
