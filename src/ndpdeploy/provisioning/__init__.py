"""Idempotent per-service bring-up."""

from ndpdeploy.provisioning.credentials import CATALOG_TOKEN_PATTERN, CredentialExtractor
from ndpdeploy.provisioning.descriptors import (
    CredentialSpec,
    ProvisionContext,
    ServiceDescriptor,
    ServiceRegistry,
)
from ndpdeploy.provisioning.provisioner import ServiceProvisioner
from ndpdeploy.provisioning.readiness import ProbeResult, ReadinessWaiter
from ndpdeploy.provisioning.results import ProvisionOutcome, RunSummary
from ndpdeploy.provisioning.services import default_registry, render_group_value
from ndpdeploy.provisioning.state import ProvisioningState

__all__ = [
    "CATALOG_TOKEN_PATTERN",
    "CredentialExtractor",
    "CredentialSpec",
    "ProvisionContext",
    "ProvisionOutcome",
    "ProvisioningState",
    "ProbeResult",
    "ReadinessWaiter",
    "RunSummary",
    "ServiceDescriptor",
    "ServiceProvisioner",
    "ServiceRegistry",
    "default_registry",
    "render_group_value",
]
