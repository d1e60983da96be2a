"""
Deploy command for an NDP endpoint host.

Commands:
    ndp-deploy --config-id <ID>                 # Deploy against production
    ndp-deploy --config-id <ID> --env test      # Use the test federation API
    ndp-deploy --config-id <ID> --base-url URL  # Explicit federation API

Re-running the command converges: services that are already provisioned and
running are left untouched.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import NoReturn, Sequence

from ndpdeploy.cli.ux import header, info, print_banner, print_lines, success
from ndpdeploy.config.settings import DeploySettings, get_settings
from ndpdeploy.core.errors import ExitCode, main_with_error_handling
from ndpdeploy.logging import bind_run_context, configure_logging
from ndpdeploy.orchestrator import Orchestrator

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class StrictArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with the generic failure code on bad usage."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(ExitCode.FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = StrictArgumentParser(
        prog="ndp-deploy",
        description="Provision an NDP endpoint from its federation configuration",
    )
    parser.add_argument(
        "--config-id",
        "--config_id",
        dest="config_id",
        required=True,
        help="Federation configuration identifier",
    )
    parser.add_argument(
        "--env",
        choices=["prod", "test"],
        default="prod",
        help="Federation API environment (default: prod)",
    )
    parser.add_argument(
        "--base-url",
        "--base_url",
        dest="base_url",
        default=None,
        help="Override the federation API base URL",
    )
    parser.add_argument(
        "--workdir",
        default=None,
        help="Directory holding service checkouts and run artifacts",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="INFO")
    return parser


def resolve_settings(workdir: str | None, settings: DeploySettings | None = None) -> DeploySettings:
    settings = settings or get_settings()
    if workdir:
        settings = settings.model_copy(update={"workdir": Path(workdir).expanduser()})
    return settings


@main_with_error_handling()
def deploy_command(
    config_id: str,
    env: str = "prod",
    base_url: str | None = None,
    workdir: str | None = None,
    settings: DeploySettings | None = None,
    orchestrator: Orchestrator | None = None,
) -> int:
    """
    Run the provisioning pipeline.

    Args:
        config_id: Federation configuration identifier
        env: Federation API environment ("prod" or "test")
        base_url: Explicit federation API base URL
        workdir: Directory for checkouts and artifacts
        settings: Settings override (defaults to environment settings)
        orchestrator: Orchestrator override

    Returns:
        Exit code (0 for success)
    """
    settings = resolve_settings(workdir, settings)
    bind_run_context(config_id=config_id, env=env)

    print_banner()
    header(f"Deploying endpoint {config_id}")

    orchestrator = orchestrator or Orchestrator(settings)
    summary = orchestrator.run(config_id, env=env, base_url=base_url)

    success("NDP stack deployed successfully!")
    print_lines(summary.lines, title="Endpoints")
    info(f"Summary written to {orchestrator.summary_path}")
    return ExitCode.SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    try:
        args = build_parser().parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    configure_logging(args.log_level)
    return deploy_command(
        config_id=args.config_id,
        env=args.env,
        base_url=args.base_url,
        workdir=args.workdir,
    )


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    raise SystemExit(main())
