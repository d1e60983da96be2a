"""
Host inspection and prerequisite tooling.

Installation goes through apt-get (with sudo when not root), matching the
Debian/Ubuntu hosts endpoints are deployed on.
"""

from __future__ import annotations

import os
import shutil
import socket
import subprocess
from typing import Callable, Dict, Optional

import structlog

from ndpdeploy.core.errors import PrerequisiteMissing, ProvisioningError
from ndpdeploy.runtime.process import run_command

logger = structlog.get_logger()

# Executable name -> apt package providing it
REQUIRED_TOOLS: Dict[str, str] = {
    "git": "git",
    "docker": "docker.io",
}
COMPOSE_PACKAGE = "docker-compose"


def detect_host_ip() -> str:
    """
    Primary address of this host.

    Uses the first address reported by ``hostname -I``, falling back to the
    source address of an outbound UDP socket.
    """
    try:
        result = subprocess.run(
            ["hostname", "-I"], capture_output=True, text=True, timeout=10
        )
        addresses = result.stdout.split()
        if result.returncode == 0 and addresses:
            return addresses[0]
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass

    try:
        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.connect(("192.0.2.1", 80))
            address = sock.getsockname()[0]
    except OSError as exc:
        raise ProvisioningError(f"Could not detect host address: {exc}") from exc

    if address.startswith("127."):
        raise ProvisioningError("Could not detect a non-loopback host address")
    return address


class HostPrerequisites:
    """Ensures git, docker and a compose implementation are installed."""

    def __init__(
        self,
        *,
        install: bool = True,
        which: Callable[[str], Optional[str]] = shutil.which,
        compose_check: Callable[[], object] | None = None,
    ) -> None:
        self._install = install
        self._which = which
        self._compose_check = compose_check

    def ensure(self) -> None:
        for tool, package in REQUIRED_TOOLS.items():
            if self._which(tool):
                continue
            self._install_package(tool, package)
            if not self._which(tool):
                raise PrerequisiteMissing(
                    f"Required tool '{tool}' is not available after installation",
                    details={"tool": tool, "package": package},
                )

        if self._compose_check is not None:
            try:
                self._compose_check()
            except PrerequisiteMissing:
                self._install_package("docker-compose", COMPOSE_PACKAGE)
                self._compose_check()

        logger.info("prerequisites_ok", tools=",".join(REQUIRED_TOOLS))

    def _install_package(self, tool: str, package: str) -> None:
        if not self._install:
            raise PrerequisiteMissing(
                f"Required tool '{tool}' is missing and installation is disabled",
                details={"tool": tool, "package": package},
            )
        if not self._which("apt-get"):
            raise PrerequisiteMissing(
                f"Required tool '{tool}' is missing and apt-get is not available",
                details={"tool": tool, "package": package},
            )

        prefix = [] if _is_root() else ["sudo"]
        logger.info("installing_package", tool=tool, package=package)
        try:
            run_command([*prefix, "apt-get", "update"])
            run_command([*prefix, "apt-get", "install", "-y", package])
        except ProvisioningError as exc:
            raise PrerequisiteMissing(
                f"Could not install '{package}'",
                details={"tool": tool, "package": package, **exc.details},
            ) from exc


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0
