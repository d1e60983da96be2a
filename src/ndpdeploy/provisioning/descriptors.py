"""Service descriptor model and registry for provisioning."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Pattern, Tuple

from ndpdeploy.config.federation import FederationConfig
from ndpdeploy.config.settings import DeploySettings
from ndpdeploy.provisioning.state import ProvisioningState


@dataclass(frozen=True)
class ProvisionContext:
    """Inputs shared by every provisioner in a run."""

    config: FederationConfig
    settings: DeploySettings
    state: ProvisioningState
    host_ip: str
    workdir: Path

    def url(self, port: int, path: str = "") -> str:
        return f"http://{self.host_ip}:{port}{path}"


@dataclass(frozen=True)
class CredentialSpec:
    """A secret minted by a command run inside the service's container."""

    state_key: str
    command: Callable[[ProvisionContext], List[str]]
    pattern: Pattern[str]
    restart_after: bool = False


@dataclass(frozen=True)
class ServiceDescriptor:
    """Static metadata describing how one service is brought up.

    Attributes:
        name: Registry key (e.g. ``catalog``)
        display_name: Human-readable name for logs and the summary
        repo_url: Source repository to clone
        directory: Checkout directory, relative to the workdir
        required_keys: State keys that must be populated for the service
            to count as provisioned
        render: Computes the env values merged into the template
        publish: Computes the non-credential state facts the service owns
        summarize: One human-readable, non-secret summary line
        enabled: Whether the service is part of this deployment
        env_templates: Template alternatives, each a list of files to
            concatenate; empty means the env file starts out blank
        env_file: Rendered env file, relative to the checkout
        env_copies: (source, destination) pairs of auxiliary env files copied
            verbatim inside the checkout before start
        build: Whether to build images on start
        container_filter: Computes the ``docker ps`` filter locating the
            main container
        log_marker: When set, readiness means this appears in the logs
        post_ready_commands: Commands run in the container once ready
        credential: Secret to extract after startup
    """

    name: str
    display_name: str
    repo_url: str
    directory: str
    required_keys: Tuple[str, ...]
    render: Callable[[ProvisionContext], Dict[str, str]]
    publish: Callable[[ProvisionContext], Dict[str, str]]
    summarize: Callable[[ProvisionContext], str]
    enabled: Callable[[FederationConfig], bool] = lambda config: True
    env_templates: Tuple[Tuple[str, ...], ...] = ()
    env_file: str = ".env"
    env_copies: Tuple[Tuple[str, str], ...] = ()
    build: bool = True
    container_filter: Optional[Callable[[ProvisionContext], str]] = None
    log_marker: Optional[Pattern[str]] = None
    post_ready_commands: Tuple[Tuple[str, ...], ...] = ()
    credential: Optional[CredentialSpec] = None

    def workdir(self, root: Path) -> Path:
        return root / self.directory


class ServiceRegistry:
    """Ordered registry of service descriptors."""

    def __init__(self) -> None:
        self._services: Dict[str, ServiceDescriptor] = {}

    def register(self, descriptor: ServiceDescriptor) -> None:
        """Register a descriptor; order of registration is provisioning order."""
        if not descriptor.name:
            raise ValueError("Service name is required")
        self._services[descriptor.name] = descriptor

    def get(self, name: str) -> Optional[ServiceDescriptor]:
        return self._services.get(name)

    def list(self) -> List[ServiceDescriptor]:
        return list(self._services.values())
