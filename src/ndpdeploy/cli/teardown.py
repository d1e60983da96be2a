"""
Teardown command: stop every endpoint service and remove its checkout.

Commands:
    ndp-teardown                   # Tear down services in the workdir
    ndp-teardown --keep-state      # Keep the provisioning state file
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List, Sequence

import structlog

from ndpdeploy.cli.deploy import LOG_LEVELS, StrictArgumentParser, resolve_settings
from ndpdeploy.cli.ux import header, info, success, warning
from ndpdeploy.config.settings import DeploySettings
from ndpdeploy.core.errors import ExitCode, NdpDeployError, main_with_error_handling
from ndpdeploy.logging import configure_logging
from ndpdeploy.provisioning.descriptors import ServiceRegistry
from ndpdeploy.provisioning.services import default_registry
from ndpdeploy.runtime.base import ContainerRuntime
from ndpdeploy.runtime.docker import DockerRuntime

logger = structlog.get_logger()


@main_with_error_handling()
def teardown_command(
    workdir: str | None = None,
    keep_state: bool = False,
    settings: DeploySettings | None = None,
    runtime: ContainerRuntime | None = None,
    registry: ServiceRegistry | None = None,
) -> int:
    """
    Stop services and delete their checkouts and run artifacts.

    A service whose containers fail to stop is still removed; the failure
    is reported as a warning.

    Returns:
        Exit code (0 for success)
    """
    settings = resolve_settings(workdir, settings)
    root = Path(settings.workdir)
    runtime = runtime or DockerRuntime()
    registry = registry or default_registry()

    header("Stopping and removing NDP stack components")

    removed: List[str] = []
    for descriptor in reversed(registry.list()):
        service_dir = descriptor.workdir(root)
        if not service_dir.is_dir():
            logger.info("service_dir_missing", service=descriptor.name, path=str(service_dir))
            continue

        try:
            runtime.stop(service_dir)
        except NdpDeployError as exc:
            logger.warning(
                "service_stop_failed", service=descriptor.name, message=exc.message, **exc.details
            )
            warning(f"Could not stop {descriptor.display_name}: {exc.message}")

        shutil.rmtree(service_dir)
        removed.append(descriptor.display_name)
        info(f"Removed {service_dir}")

    artifacts = [settings.summary_file, settings.snapshot_file]
    if not keep_state:
        artifacts.append(settings.state_file)
    for name in artifacts:
        path = root / name
        if path.exists():
            path.unlink()
            info(f"Removed {path}")

    logger.info("teardown_complete", removed=",".join(removed))
    success("All services stopped and cleaned up")
    return ExitCode.SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    parser = StrictArgumentParser(
        prog="ndp-teardown",
        description="Stop NDP endpoint services and remove their checkouts",
    )
    parser.add_argument("--workdir", default=None, help="Deploy working directory")
    parser.add_argument(
        "--keep-state",
        action="store_true",
        help="Keep the provisioning state file (generated credentials)",
    )
    parser.add_argument("--log-level", choices=LOG_LEVELS, default="INFO")

    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return int(exc.code or 0)

    configure_logging(args.log_level)
    return teardown_command(workdir=args.workdir, keep_state=args.keep_state)


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    raise SystemExit(main())
