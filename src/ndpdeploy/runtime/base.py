from __future__ import annotations

from pathlib import Path
from typing import Protocol, Sequence

HEALTHY_STATUSES = frozenset({"healthy", "running"})


class ContainerRuntime(Protocol):
    """Container engine operations the provisioners rely on."""

    def is_running(self, workdir: Path) -> bool:
        """Whether the compose project in ``workdir`` has running services."""
        ...

    def start(self, workdir: Path, *, build: bool = True) -> None:
        ...

    def stop(self, workdir: Path) -> None:
        ...

    def find_container(self, filter_expr: str) -> str | None:
        """Id of the first running container matching a ``docker ps`` filter."""
        ...

    def status(self, container_id: str) -> str:
        """Health status when the container declares a healthcheck, else its state."""
        ...

    def exec(self, container_id: str, command: Sequence[str]) -> str:
        ...

    def logs(self, container_id: str, tail: int = 200) -> str:
        ...

    def restart(self, container_id: str) -> None:
        ...


class SourceFetcher(Protocol):
    """Materializes a service's source repository locally."""

    def ensure_cloned(self, repo_url: str, dest: Path) -> bool:
        """Clone ``repo_url`` into ``dest`` unless present. True when cloned now."""
        ...


class Prerequisites(Protocol):
    """Verifies (and where possible installs) host tooling."""

    def ensure(self) -> None:
        ...
