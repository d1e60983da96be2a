"""
Tests for the error taxonomy and CLI error handling decorator.
"""

from unittest.mock import patch

import pytest
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


class TestErrorHierarchy:
    """Test exception classes and their exit codes."""

    @pytest.mark.parametrize(
        "error_cls",
        [ConfigFetchError, ValidationError, PrerequisiteMissing, ProvisioningError],
    )
    def test_top_level_errors_are_failures(self, error_cls):
        error = error_cls("boom")
        assert isinstance(error, NdpDeployError)
        assert error.exit_code == ExitCode.FAILURE
        assert error.details == {}

    @pytest.mark.parametrize(
        "error_cls", [TemplateMissing, ContainerNotDetected, ReadinessTimeout]
    )
    def test_step_failures_are_provisioning_errors(self, error_cls):
        assert issubclass(error_cls, ProvisioningError)

    def test_extraction_error_keeps_raw_output(self):
        error = CredentialExtractionError("no token", raw_output="garbage\r\n")
        assert isinstance(error, ProvisioningError)
        assert error.raw_output == "garbage\r\n"
        assert error.message == "no token"


class TestFormatErrorMessage:
    def test_without_details(self):
        assert format_error_message(ValidationError("bad")) == "ValidationError: bad"

    def test_with_details(self):
        error = ConfigFetchError("HTTP 500", details={"url": "https://x/ep/1", "status": 500})
        assert format_error_message(error) == (
            "ConfigFetchError: HTTP 500 (url=https://x/ep/1, status=500)"
        )


class TestMainWithErrorHandling:
    """Test the decorator that turns exceptions into exit codes."""

    def test_success_passthrough(self):
        @main_with_error_handling()
        def command():
            return 0

        assert command() == 0

    def test_known_error_returns_exit_code_and_reports(self):
        @main_with_error_handling()
        def command():
            raise ValidationError("missing ckan_password", details={"field": "ckan_password"})

        with patch("ndpdeploy.cli.ux.error") as mock_error:
            assert command() == 1

        mock_error.assert_called_once()
        assert "missing ckan_password" in mock_error.call_args[0][0]

    def test_keyboard_interrupt(self):
        @main_with_error_handling()
        def command():
            raise KeyboardInterrupt

        assert command() == ExitCode.INTERRUPTED

    def test_unexpected_error_is_failure(self):
        @main_with_error_handling()
        def command():
            raise RuntimeError("unexpected")

        assert command() == ExitCode.FAILURE
