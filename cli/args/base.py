from __future__ import annotations

import argparse
from pathlib import Path

from pipeline.steps import STEPS


def add_base_args(parser: argparse.ArgumentParser, *, root_dir: Path) -> None:
    """Register flags that do not depend on the step's own configuration.

    This includes:
    - step selection
    - where installations and persisted configuration come from
    - workspace / module root / build variables
    - execution knobs
    """

    parser.add_argument(
        "--step",
        choices=sorted(STEPS),
        default="msbuild-begin",
        help="Which build step to run (default: msbuild-begin).",
    )
    parser.add_argument(
        "--registry",
        default=str(root_dir / "installations.json"),
        help="JSON file listing tool and service installations (default: installations.json).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Persisted step configuration (JSON). Older files are migrated on load.",
    )
    parser.add_argument(
        "--list-installations",
        action="store_true",
        help="Print the configured installation names and exit.",
    )

    parser.add_argument(
        "--workspace",
        default=".",
        help="Build workspace root (default: current directory).",
    )
    parser.add_argument(
        "--module-root",
        default=None,
        help="Working directory for the scanner, relative to the workspace (default: workspace root).",
    )
    parser.add_argument(
        "-D",
        "--define",
        dest="defines",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Build variable made available for ${KEY} expansion (repeatable).",
    )
    parser.add_argument(
        "--params-out",
        default=None,
        help="Write the installation names used by this run to a JSON file (read by the end step).",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the (masked) command line but do not execute the scanner.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for diagnostics (default: WARNING).",
    )
