from __future__ import annotations

import argparse


def add_step_config_args(parser: argparse.ArgumentParser) -> None:
    """Flags mirroring the begin step's configuration fields.

    Each flag overrides the value loaded from ``--config`` when given.
    """

    group = parser.add_argument_group("step configuration")
    group.add_argument("--scanner-installation", dest="tool_installation_name", default=None,
                       help="SonarScanner for MSBuild installation name (default: first configured).")
    group.add_argument("--sonar-installation", dest="service_installation_name", default=None,
                       help="SonarQube installation name (default: first configured).")
    group.add_argument("--project-key", dest="project_key", default=None, help="Sonar project key (/k:).")
    group.add_argument("--project-name", dest="project_name", default=None, help="Sonar project name (/n:).")
    group.add_argument("--project-version", dest="project_version", default=None,
                       help="Sonar project version (/v:).")
    group.add_argument("--additional-arguments", dest="additional_arguments", default=None,
                       help="Extra scanner arguments; ${VAR} references are expanded.")
    group.add_argument(
        "--token-property",
        choices=["auto", "login", "token"],
        default="auto",
        help=(
            "Property carrying the token: auto = ask the server for its version (default; "
            "sonar.login under --dry-run, which makes no network calls)."
        ),
    )
