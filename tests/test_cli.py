"""
Tests for the ndp-deploy command line.
"""

from unittest.mock import MagicMock, patch

import pytest
from ndpdeploy.cli.deploy import build_parser, deploy_command, main
from ndpdeploy.core.errors import ReadinessTimeout, ValidationError
from ndpdeploy.provisioning.results import ProvisionOutcome, RunSummary


@pytest.fixture
def no_logging_config():
    with patch("ndpdeploy.cli.deploy.configure_logging"):
        yield


class TestArgumentParsing:
    """Test flag handling and usage errors."""

    def test_config_id_spellings(self):
        parser = build_parser()
        assert parser.parse_args(["--config-id", "ep-1"]).config_id == "ep-1"
        assert parser.parse_args(["--config_id", "ep-2"]).config_id == "ep-2"

    def test_defaults(self):
        args = build_parser().parse_args(["--config-id", "ep-1"])
        assert args.env == "prod"
        assert args.base_url is None
        assert args.workdir is None

    @pytest.mark.parametrize(
        "argv",
        [
            [],
            ["--config-id"],
            ["--config-id", "ep-1", "--bogus"],
            ["--config-id", "ep-1", "--env", "staging"],
            ["--config-id", "ep-1", "extra"],
        ],
    )
    def test_usage_errors_exit_1_without_side_effects(self, argv, no_logging_config):
        with patch("ndpdeploy.cli.deploy.deploy_command") as mock_deploy:
            assert main(argv) == 1
        mock_deploy.assert_not_called()

    def test_help_exits_0(self, no_logging_config):
        assert main(["--help"]) == 0

    def test_main_dispatches(self, no_logging_config):
        with patch("ndpdeploy.cli.deploy.deploy_command", return_value=0) as mock_deploy:
            result = main(
                [
                    "--config_id", "ep-1",
                    "--env", "test",
                    "--base-url", "http://x",
                    "--workdir", "/srv/ndp",
                ]
            )

        assert result == 0
        mock_deploy.assert_called_once_with(
            config_id="ep-1", env="test", base_url="http://x", workdir="/srv/ndp"
        )


class TestDeployCommand:
    def test_success(self, settings):
        summary = RunSummary(config_id="ep-1", host_ip="10.0.0.5")
        summary.record(ProvisionOutcome("catalog", False, "CKAN URL: http://10.0.0.5:8443"))
        orchestrator = MagicMock()
        orchestrator.run.return_value = summary

        result = deploy_command(config_id="ep-1", settings=settings, orchestrator=orchestrator)

        assert result == 0
        orchestrator.run.assert_called_once_with("ep-1", env="prod", base_url=None)

    @pytest.mark.parametrize(
        "error", [ValidationError("missing fields"), ReadinessTimeout("CKAN not ready")]
    )
    def test_failures_exit_1(self, settings, error):
        orchestrator = MagicMock()
        orchestrator.run.side_effect = error

        assert deploy_command(config_id="ep-1", settings=settings, orchestrator=orchestrator) == 1

    def test_workdir_override(self, settings, tmp_path):
        orchestrator = MagicMock()
        orchestrator.run.return_value = RunSummary(config_id="ep-1")

        with patch("ndpdeploy.cli.deploy.Orchestrator", return_value=orchestrator) as mock_cls:
            deploy_command(config_id="ep-1", workdir=str(tmp_path / "ndp"), settings=settings)

        used_settings = mock_cls.call_args[0][0]
        assert used_settings.workdir == tmp_path / "ndp"
