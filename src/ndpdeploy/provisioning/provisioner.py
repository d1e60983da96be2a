"""
Generic idempotent service provisioner.

Every service goes through the same steps, differing only in its descriptor:

1. skip when already provisioned (state facts present and service running)
2. clone the source unless already checked out
3. render the env file and copy auxiliary env files
4. start, unless already running
5. wait for readiness
6. run post-ready commands and extract a generated credential
7. publish state facts and summarize

Each step must succeed before the next one runs; any error aborts the run.
"""

from __future__ import annotations

from pathlib import Path

import structlog

from ndpdeploy.core.errors import ContainerNotDetected, ProvisioningError
from ndpdeploy.provisioning.credentials import CredentialExtractor
from ndpdeploy.provisioning.descriptors import ProvisionContext, ServiceDescriptor
from ndpdeploy.provisioning.readiness import Probe, ProbeResult, ReadinessWaiter
from ndpdeploy.provisioning.rendering import (
    copy_env_files,
    load_template,
    render_env,
    write_env,
)
from ndpdeploy.provisioning.results import ProvisionOutcome
from ndpdeploy.runtime.base import HEALTHY_STATUSES, ContainerRuntime, SourceFetcher

logger = structlog.get_logger()

LOG_EXCERPT = 300


class ServiceProvisioner:
    """Brings one service to its provisioned state without redoing work."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        sources: SourceFetcher,
        *,
        waiter: ReadinessWaiter | None = None,
        extractor: CredentialExtractor | None = None,
    ) -> None:
        self._runtime = runtime
        self._sources = sources
        self._waiter = waiter or ReadinessWaiter()
        self._extractor = extractor or CredentialExtractor()

    def is_provisioned(self, descriptor: ServiceDescriptor, ctx: ProvisionContext) -> bool:
        """State facts are the source of truth; the live probe corroborates them."""
        if not ctx.state.has_all(descriptor.required_keys):
            return False
        return self._runtime.is_running(descriptor.workdir(ctx.workdir))

    def provision(self, descriptor: ServiceDescriptor, ctx: ProvisionContext) -> ProvisionOutcome:
        log = logger.bind(service=descriptor.name)
        workdir = descriptor.workdir(ctx.workdir)

        if self.is_provisioned(descriptor, ctx):
            log.info("service_already_provisioned")
            return ProvisionOutcome(
                service=descriptor.name,
                skipped=True,
                summary=descriptor.summarize(ctx),
            )

        log.info("provisioning_service", workdir=str(workdir))
        outcome = ProvisionOutcome(service=descriptor.name, skipped=False, summary="")

        outcome.cloned = self._sources.ensure_cloned(descriptor.repo_url, workdir)

        template = load_template(workdir, descriptor.env_templates)
        write_env(workdir / descriptor.env_file, render_env(template, descriptor.render(ctx)))
        copy_env_files(workdir, descriptor.env_copies)

        if self._runtime.is_running(workdir):
            log.info("service_already_running")
        else:
            self._runtime.start(workdir, build=descriptor.build)
            outcome.started = True

        container = self._locate(descriptor, ctx)
        self._wait(descriptor, ctx, workdir, container, fresh_start=outcome.started)

        for command in descriptor.post_ready_commands:
            self._runtime.exec(self._require(descriptor, container), list(command))

        spec = descriptor.credential
        if spec is not None and not ctx.state.get(spec.state_key):
            container_id = self._require(descriptor, container)
            raw_output = self._runtime.exec(container_id, spec.command(ctx))
            secret = self._extractor.extract(raw_output, spec.pattern)
            ctx.state.set(spec.state_key, secret)
            outcome.credential_extracted = True
            log.info("credential_extracted", state_key=spec.state_key)

            if spec.restart_after:
                self._runtime.restart(container_id)
                self._wait(descriptor, ctx, workdir, container_id, fresh_start=True)

        ctx.state.update(descriptor.publish(ctx))
        outcome.summary = descriptor.summarize(ctx)
        log.info("service_provisioned", started=outcome.started, cloned=outcome.cloned)
        return outcome

    def _locate(self, descriptor: ServiceDescriptor, ctx: ProvisionContext) -> str | None:
        if descriptor.container_filter is None:
            return None
        filter_expr = descriptor.container_filter(ctx)
        container = self._runtime.find_container(filter_expr)
        if container is None:
            raise ContainerNotDetected(
                f"{descriptor.display_name} container not detected",
                details={"service": descriptor.name, "filter": filter_expr},
            )
        logger.debug("container_detected", service=descriptor.name, container=container)
        return container

    def _require(self, descriptor: ServiceDescriptor, container: str | None) -> str:
        if container is None:
            raise ProvisioningError(
                f"{descriptor.display_name} needs a container filter to run commands",
                details={"service": descriptor.name},
            )
        return container

    def _wait(
        self,
        descriptor: ServiceDescriptor,
        ctx: ProvisionContext,
        workdir: Path,
        container: str | None,
        *,
        fresh_start: bool,
    ) -> None:
        self._waiter.wait_until_ready(
            self._probe(descriptor, workdir, container, fresh_start),
            timeout=ctx.settings.readiness_timeout,
            interval=ctx.settings.readiness_interval,
            description=descriptor.display_name,
        )

    def _probe(
        self,
        descriptor: ServiceDescriptor,
        workdir: Path,
        container: str | None,
        fresh_start: bool,
    ) -> Probe:
        runtime = self._runtime
        marker = descriptor.log_marker

        # The startup marker only shows up in the log tail right after a start
        if marker is not None and fresh_start:
            container_id = self._require(descriptor, container)

            def log_probe() -> ProbeResult:
                logs = runtime.logs(container_id)
                return ProbeResult(bool(marker.search(logs)), logs[-LOG_EXCERPT:])

            return log_probe

        if container is not None:

            def status_probe() -> ProbeResult:
                status = runtime.status(container)
                return ProbeResult(status in HEALTHY_STATUSES, status)

            return status_probe

        def compose_probe() -> ProbeResult:
            running = runtime.is_running(workdir)
            return ProbeResult(running, "running" if running else "not running")

        return compose_probe
