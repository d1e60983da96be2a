"""
Docker / docker compose adapter.

Supports both the compose plugin (``docker compose``) and the standalone
``docker-compose`` binary, preferring the plugin when available.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import List, Sequence

import structlog

from ndpdeploy.core.errors import PrerequisiteMissing
from ndpdeploy.runtime.process import run_command

logger = structlog.get_logger()

STATUS_FORMAT = "{{if .State.Health}}{{.State.Health.Status}}{{else}}{{.State.Status}}{{end}}"


class DockerRuntime:
    """ContainerRuntime backed by the docker CLI."""

    def __init__(self, docker_path: str | None = None) -> None:
        self._docker = docker_path or shutil.which("docker") or "docker"
        self._compose: List[str] | None = None

    def compose_command(self) -> List[str]:
        """Detect the compose invocation once per runtime."""
        if self._compose is not None:
            return self._compose

        try:
            probe = subprocess.run(
                [self._docker, "compose", "version"],
                capture_output=True,
                text=True,
                timeout=30,
            )
            if probe.returncode == 0:
                self._compose = [self._docker, "compose"]
        except (FileNotFoundError, subprocess.TimeoutExpired):
            pass

        if self._compose is None:
            standalone = shutil.which("docker-compose")
            if standalone is None:
                raise PrerequisiteMissing(
                    "Neither 'docker compose' nor 'docker-compose' is available"
                )
            self._compose = [standalone]

        logger.debug("compose_command_detected", cmd=" ".join(self._compose))
        return self._compose

    def is_running(self, workdir: Path) -> bool:
        if not workdir.is_dir():
            return False
        result = run_command(
            [*self.compose_command(), "ps", "--services", "--filter", "status=running"],
            cwd=workdir,
            check=False,
        )
        return result.returncode == 0 and bool(result.stdout.strip())

    def start(self, workdir: Path, *, build: bool = True) -> None:
        cmd = [*self.compose_command(), "up", "-d"]
        if build:
            cmd.append("--build")
        logger.info("compose_up", workdir=str(workdir), build=build)
        run_command(cmd, cwd=workdir)

    def stop(self, workdir: Path) -> None:
        logger.info("compose_down", workdir=str(workdir))
        run_command([*self.compose_command(), "down"], cwd=workdir)

    def find_container(self, filter_expr: str) -> str | None:
        result = run_command(
            [self._docker, "ps", "--filter", filter_expr, "--format", "{{.ID}}"],
            timeout=60,
        )
        ids = result.stdout.split()
        return ids[0] if ids else None

    def status(self, container_id: str) -> str:
        result = run_command(
            [self._docker, "inspect", "-f", STATUS_FORMAT, container_id],
            timeout=60,
            check=False,
        )
        if result.returncode != 0:
            return f"inspect failed: {result.stderr.strip()}"
        return result.stdout.strip()

    def exec(self, container_id: str, command: Sequence[str]) -> str:
        result = run_command([self._docker, "exec", container_id, *command], timeout=300)
        return result.stdout

    def logs(self, container_id: str, tail: int = 200) -> str:
        result = run_command(
            [self._docker, "logs", "--tail", str(tail), container_id],
            timeout=60,
            check=False,
        )
        return result.stdout + result.stderr

    def restart(self, container_id: str) -> None:
        logger.info("container_restart", container=container_id)
        run_command([self._docker, "restart", container_id], timeout=300)
