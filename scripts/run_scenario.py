#!/usr/bin/env python3
"""Simulate and analyse one silo control scenario, printing a JSON summary.

Usage
-----
python scripts/run_scenario.py configs/scenarios/fuzzy_pid.yaml

# Include the full trajectory in the output:
python scripts/run_scenario.py configs/scenarios/hurwitz.yaml --trajectory

The summary goes to stdout; structured logs go to stderr
(level from SILOTHERM_LOG_LEVEL).  Nothing is written to disk.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

# Make src importable when run directly (project root / src)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(_PROJECT_ROOT / "src"))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Silo temperature-control scenario runner")
    p.add_argument(
        "scenario", type=str,
        help="Scenario YAML file (relative paths resolve against the project root)",
    )
    p.add_argument(
        "--trajectory", action="store_true",
        help="Include the full simulated trajectory in the output",
    )
    p.add_argument(
        "--indent", type=int, default=2,
        help="JSON indentation (0 for compact output)",
    )
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    from silotherm.analysis.scenario_runner import ScenarioRunner
    from silotherm.errors import SiloThermError
    from silotherm.utils.config import ConfigError, ConfigLoader
    from silotherm.utils.logging import get_logger

    logger = get_logger("silotherm.scripts.run_scenario")

    try:
        config = ConfigLoader().load_scenario(args.scenario)
        result = ScenarioRunner().run(config)
    except (ConfigError, SiloThermError) as exc:
        logger.error("Scenario failed", path=args.scenario, error=str(exc))
        return 1

    summary = result.to_dict(include_trajectory=args.trajectory)
    print(json.dumps(summary, indent=args.indent or None))
    return 0


if __name__ == "__main__":
    sys.exit(main())
