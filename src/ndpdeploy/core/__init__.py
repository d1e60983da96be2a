"""Core modules for ndpdeploy - error taxonomy and exit codes."""

from ndpdeploy.core.errors import (
    ConfigFetchError,
    ContainerNotDetected,
    CredentialExtractionError,
    ExitCode,
    NdpDeployError,
    PrerequisiteMissing,
    ProvisioningError,
    ReadinessTimeout,
    TemplateMissing,
    ValidationError,
    format_error_message,
    main_with_error_handling,
)

__all__ = [
    "ExitCode",
    "NdpDeployError",
    "ConfigFetchError",
    "ValidationError",
    "PrerequisiteMissing",
    "ProvisioningError",
    "TemplateMissing",
    "ContainerNotDetected",
    "ReadinessTimeout",
    "CredentialExtractionError",
    "main_with_error_handling",
    "format_error_message",
]
