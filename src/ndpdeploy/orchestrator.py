"""
Endpoint deploy orchestrator.

Runs the fixed provisioning pipeline for one federation document:
fetch config, detect the host address, verify host tooling, then bring up
broker, catalog, staging, hub and gateway in that order. The first error
stops the run; facts persisted by completed steps stay valid for the next
invocation.
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import Callable, Optional

import structlog
import yaml

from ndpdeploy.config.federation import FederationConfig, format_bool
from ndpdeploy.config.fetcher import ConfigFetcher
from ndpdeploy.config.settings import DeploySettings
from ndpdeploy.provisioning.credentials import CredentialExtractor
from ndpdeploy.provisioning.descriptors import ProvisionContext, ServiceRegistry
from ndpdeploy.provisioning.provisioner import ServiceProvisioner
from ndpdeploy.provisioning.readiness import ReadinessWaiter
from ndpdeploy.provisioning.results import RunSummary
from ndpdeploy.provisioning.services import HOST_IP, default_registry
from ndpdeploy.provisioning.state import ProvisioningState, write_private_file
from ndpdeploy.runtime.base import ContainerRuntime, Prerequisites, SourceFetcher
from ndpdeploy.runtime.docker import DockerRuntime
from ndpdeploy.runtime.git import GitSourceFetcher
from ndpdeploy.runtime.host import HostPrerequisites, detect_host_ip

logger = structlog.get_logger()


class Orchestrator:
    """Sequences service provisioners for one endpoint deployment."""

    def __init__(
        self,
        settings: DeploySettings,
        *,
        fetcher: Optional[ConfigFetcher] = None,
        runtime: Optional[ContainerRuntime] = None,
        sources: Optional[SourceFetcher] = None,
        prerequisites: Optional[Prerequisites] = None,
        registry: Optional[ServiceRegistry] = None,
        waiter: Optional[ReadinessWaiter] = None,
        extractor: Optional[CredentialExtractor] = None,
        detect_host: Callable[[], str] = detect_host_ip,
    ) -> None:
        self.settings = settings
        self.workdir = Path(settings.workdir)
        self._fetcher = fetcher or ConfigFetcher(settings)

        if runtime is None:
            runtime = DockerRuntime()
        self._runtime = runtime
        self._prerequisites = prerequisites or HostPrerequisites(
            install=settings.install_missing_tools,
            compose_check=getattr(runtime, "compose_command", None),
        )
        self._registry = registry or default_registry()
        self._detect_host = detect_host
        self._provisioner = ServiceProvisioner(
            runtime,
            sources or GitSourceFetcher(),
            waiter=waiter,
            extractor=extractor,
        )

    @property
    def state_path(self) -> Path:
        return self.workdir / self.settings.state_file

    @property
    def snapshot_path(self) -> Path:
        return self.workdir / self.settings.snapshot_file

    @property
    def summary_path(self) -> Path:
        return self.workdir / self.settings.summary_file

    def run(self, config_id: str, env: str = "prod", base_url: str | None = None) -> RunSummary:
        """
        Provision every enabled service for ``config_id``.

        Returns:
            The run summary, also written to the summary file

        Raises:
            NdpDeployError: The first failure; nothing after it runs
        """
        started = time.monotonic()

        config = self._fetcher.fetch(env, base_url, config_id)
        self.workdir.mkdir(parents=True, exist_ok=True)
        self._write_snapshot(config)

        state = ProvisioningState.load(self.state_path)
        host_ip = self._detect_host()
        previous_ip = state.get(HOST_IP)
        if previous_ip and previous_ip != host_ip:
            logger.warning("host_ip_changed", previous=previous_ip, current=host_ip)
        state.update(
            {
                HOST_IP: host_ip,
                "streaming": format_bool(config.streaming),
                "staging": format_bool(config.staging),
                "jhub": format_bool(config.jhub),
            }
        )

        self._prerequisites.ensure()

        ctx = ProvisionContext(
            config=config,
            settings=self.settings,
            state=state,
            host_ip=host_ip,
            workdir=self.workdir,
        )
        summary = RunSummary(config_id=config.config_id, host_ip=host_ip)

        services = self._registry.list()
        for step, descriptor in enumerate(services, 1):
            if not descriptor.enabled(config):
                logger.info("service_disabled", service=descriptor.name)
                state.discard(descriptor.required_keys)
                continue
            logger.info(
                "provision_step",
                step=step,
                total=len(services),
                service=descriptor.name,
            )
            summary.record(self._provisioner.provision(descriptor, ctx))

        summary.duration_seconds = time.monotonic() - started
        summary.write(self.summary_path)
        logger.info(
            "deploy_complete",
            services=",".join(summary.services),
            duration_seconds=round(summary.duration_seconds, 1),
        )
        return summary

    def _write_snapshot(self, config: FederationConfig) -> None:
        content = yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)
        write_private_file(self.snapshot_path, content)
        logger.debug("config_snapshot_saved", path=str(self.snapshot_path))
