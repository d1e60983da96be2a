"""
Unified error handling for ndpdeploy.

Every failure during a deploy run is terminal: the error is logged, reported
to the operator and turned into a non-zero exit code. Whatever was persisted
to the provisioning state before the failing step stays in place so the next
invocation can converge.

Exit Codes:
- 0: Success
- 1: Any validation, fetch, prerequisite, container, readiness or
     extraction failure (and unexpected errors)
- 130: Interrupted (SIGINT)
"""

from __future__ import annotations

import functools
import sys
import traceback
from enum import IntEnum
from typing import Any, Callable, TypeVar

import structlog

logger = structlog.get_logger()


class ExitCode(IntEnum):
    """Exit codes for ndpdeploy commands."""

    SUCCESS = 0
    FAILURE = 1
    INTERRUPTED = 130


class NdpDeployError(Exception):
    """Base exception for ndpdeploy errors with exit code support."""

    exit_code: ExitCode = ExitCode.FAILURE
    show_traceback: bool = False

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigFetchError(NdpDeployError):
    """Raised when the federation document cannot be retrieved or parsed."""


class ValidationError(NdpDeployError):
    """Raised when a required field is missing or malformed."""


class PrerequisiteMissing(NdpDeployError):
    """Raised when a required host tool is absent and cannot be installed."""


class ProvisioningError(NdpDeployError):
    """Raised when a provisioning step (clone, compose, exec) fails."""


class TemplateMissing(ProvisioningError):
    """Raised when a cloned service ships none of its expected env templates."""


class ContainerNotDetected(ProvisioningError):
    """Raised when an expected container is not found after start."""


class ReadinessTimeout(ProvisioningError):
    """Raised when a readiness probe never succeeds within its bound."""


class CredentialExtractionError(ProvisioningError):
    """Raised when a generated secret cannot be parsed from command output."""

    def __init__(
        self,
        message: str,
        raw_output: str,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message, details)
        self.raw_output = raw_output


F = TypeVar("F", bound=Callable[..., int])


def main_with_error_handling(
    *,
    show_traceback: bool = False,
    log_errors: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for CLI main functions that provides unified error handling.

    Args:
        show_traceback: If True, show full traceback for unexpected errors
        log_errors: If True, log errors to structlog

    Usage:
        @main_with_error_handling()
        def main(argv=None) -> int:
            ...
            return 0

    Exit codes:
        - NdpDeployError subclasses: Uses the error's exit_code
        - KeyboardInterrupt: Returns 130
        - Other exceptions: Returns 1
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> int:
            try:
                return func(*args, **kwargs)
            except NdpDeployError as e:
                if log_errors:
                    logger.error(
                        "command_error",
                        error_type=type(e).__name__,
                        message=e.message,
                        exit_code=int(e.exit_code),
                        **e.details,
                    )
                _report(e)
                if e.show_traceback or show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return e.exit_code
            except KeyboardInterrupt:
                if log_errors:
                    logger.info("command_interrupted")
                return ExitCode.INTERRUPTED
            except Exception as e:
                if log_errors:
                    logger.error(
                        "unexpected_error",
                        error_type=type(e).__name__,
                        message=str(e),
                        exit_code=int(ExitCode.FAILURE),
                    )
                if show_traceback:
                    traceback.print_exc(file=sys.stderr)
                return ExitCode.FAILURE

        return wrapper  # type: ignore[return-value]

    return decorator


def format_error_message(error: NdpDeployError) -> str:
    """Format an error message for display to operators."""
    msg = f"{type(error).__name__}: {error.message}"
    if error.details:
        detail_str = ", ".join(f"{k}={v}" for k, v in error.details.items())
        msg = f"{msg} ({detail_str})"
    return msg


def _report(error: NdpDeployError) -> None:
    from ndpdeploy.cli.ux import error as print_error

    print_error(format_error_message(error))
