from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import BinaryIO

from cli.common import parse_defines
from pipeline.steps import get_step
from sonar_msbuild.config import StepConfiguration, load_step_config
from sonar_msbuild.errors import (
    ConfigurationError,
    ExecutionFailure,
    InterruptedExecution,
    LaunchError,
)
from sonar_msbuild.registry import load_registry, registry_summary
from sonar_msbuild.step import RunContext
from sonar_msbuild.token_property import (
    ServerVersionTokenProperty,
    legacy_login_property,
    token_property,
)
from tools.core_cmd import RecordingLauncher
from tools.io import write_json

logger = logging.getLogger(__name__)

EXIT_CONFIGURATION_ERROR = 2
EXIT_LAUNCH_ERROR = 127
EXIT_INTERRUPTED = 130

_TOKEN_PROPERTY_STRATEGIES = {
    "auto": ServerVersionTokenProperty,
    "login": lambda: legacy_login_property,
    "token": lambda: token_property,
}

_CONFIG_FIELDS = (
    "tool_installation_name",
    "service_installation_name",
    "project_key",
    "project_name",
    "project_version",
    "additional_arguments",
)


def _step_config(args: argparse.Namespace) -> StepConfiguration:
    base = load_step_config(Path(args.config)) if args.config else StepConfiguration()
    return base.with_overrides(**{name: getattr(args, name, None) for name in _CONFIG_FIELDS})


def _token_property_strategy(args: argparse.Namespace):
    choice = args.token_property
    if choice == "auto" and args.dry_run:
        # no server version lookup in a dry run
        choice = "login"
    return _TOKEN_PROPERTY_STRATEGIES[choice]()


def run_begin(args: argparse.Namespace, *, sink: BinaryIO) -> int:
    """Run the begin step from parsed CLI args. Returns a process exit code."""
    descriptor = get_step(args.step)

    try:
        registry = load_registry(Path(args.registry))
        if args.list_installations:
            summary = registry_summary(registry)
            print("Tool installations   :", ", ".join(summary["tools"]) or "(none)")
            print("Service installations:", ", ".join(summary["services"]) or "(none)")
            return 0

        config = _step_config(args)
        build_variables = parse_defines(args.defines)
        logger.debug("Step configuration: %s", config)
    except (ConfigurationError, ValueError) as e:
        print(f"ERROR: {e}")
        return EXIT_CONFIGURATION_ERROR

    check = descriptor.validate("projectKey", config.project_key)
    if not check.ok:
        # the scanner reports this itself; warn early
        print(f"⚠️ projectKey: {check.message}")

    launcher = RecordingLauncher() if args.dry_run else None
    step = descriptor.factory(
        config,
        registry,
        launcher=launcher,
        token_property=_token_property_strategy(args),
    )

    run = RunContext(
        workspace=Path(args.workspace).resolve(),
        build_variables=build_variables,
        module_root_override=args.module_root,
        sink=sink,
    )

    print(f"▶️ {descriptor.display_name}", flush=True)
    try:
        step.perform(run)
    except ConfigurationError as e:
        print(f"ERROR: {e}")
        return EXIT_CONFIGURATION_ERROR
    except LaunchError as e:
        print(f"ERROR: {e}")
        return EXIT_LAUNCH_ERROR
    except InterruptedExecution as e:
        print(f"⛔ {e}")
        return EXIT_INTERRUPTED
    except ExecutionFailure as e:
        print(f"❌ {e}")
        return e.exit_code if 0 < e.exit_code < 256 else 1
    finally:
        if args.params_out and run.params:
            write_json(Path(args.params_out), run.params[-1].to_dict())

    if args.dry_run:
        print("  (dry-run: not executed)")
    else:
        print("✅ Begin analysis step finished.")
    return 0
