from __future__ import annotations

from silotherm.scripts._runner import run_repo_script


def main() -> None:
    # Scenario execution lives in the repository script so it can also run uncompiled.
    run_repo_script("run_scenario.py")
