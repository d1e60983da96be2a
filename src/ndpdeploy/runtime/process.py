"""Thin subprocess wrapper shared by the runtime adapters."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence

import structlog

from ndpdeploy.core.errors import ProvisioningError

logger = structlog.get_logger()

DEFAULT_TIMEOUT = 1800


def run_command(
    cmd: Sequence[str],
    *,
    cwd: Path | None = None,
    timeout: float = DEFAULT_TIMEOUT,
    check: bool = True,
) -> subprocess.CompletedProcess:
    """
    Run an external command with captured text output.

    Raises:
        ProvisioningError: If the binary is missing, the command times out,
            or (with ``check``) exits non-zero. stderr is kept in the details.
    """
    logger.debug("running_command", cmd=" ".join(cmd), cwd=str(cwd) if cwd else None)
    try:
        result = subprocess.run(
            list(cmd),
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except FileNotFoundError as exc:
        raise ProvisioningError(
            f"Command not found: {cmd[0]}", details={"cmd": " ".join(cmd)}
        ) from exc
    except subprocess.TimeoutExpired as exc:
        raise ProvisioningError(
            f"Command timed out after {timeout} seconds", details={"cmd": " ".join(cmd)}
        ) from exc

    if check and result.returncode != 0:
        raise ProvisioningError(
            f"Command failed with exit code {result.returncode}",
            details={
                "cmd": " ".join(cmd),
                "cwd": str(cwd) if cwd else "",
                "stderr": result.stderr.strip()[-500:],
            },
        )
    return result
