#!/usr/bin/env python3
"""
Command-line runner for the SonarScanner for MSBuild begin step.

Usage:
  python msbuild_cli.py --registry installations.json --project-key demo
  python msbuild_cli.py --config step.json -D BUILD_NUMBER=42 --params-out begin-params.json
  python msbuild_cli.py --registry installations.json --list-installations
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from cli.args.base import add_base_args
from cli.args.step_config import add_step_config_args
from cli.commands.begin import run_begin
from tools.core_root import ROOT_DIR


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the SonarScanner for MSBuild begin step.")
    add_base_args(parser, root_dir=Path.cwd())
    add_step_config_args(parser)
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Workspace .env first, then the repo's own; neither overrides real env vars.
    load_dotenv(Path(args.workspace) / ".env")
    load_dotenv(ROOT_DIR / ".env")

    return run_begin(args, sink=sys.stdout.buffer)


if __name__ == "__main__":
    raise SystemExit(main())
