"""
Tests for the ndp-teardown command.
"""

from unittest.mock import patch

import pytest
from ndpdeploy.cli.teardown import main, teardown_command


@pytest.fixture
def deployed(tmp_path):
    for name in ("ckan", "pop", "jhub"):
        (tmp_path / name / ".git").mkdir(parents=True)
    for name in ("provisioning_state.env", "federation_config.yaml", "deploy_summary.txt"):
        (tmp_path / name).write_text("x=1\n")
    return tmp_path


class TestTeardown:
    """Test stopping services and removing artifacts."""

    def test_removes_services_and_artifacts(self, settings, runtime, deployed):
        assert teardown_command(settings=settings, runtime=runtime) == 0

        assert runtime.actions("stop") == [("stop", "pop"), ("stop", "jhub"), ("stop", "ckan")]
        removed = (
            "ckan",
            "pop",
            "jhub",
            "provisioning_state.env",
            "federation_config.yaml",
            "deploy_summary.txt",
        )
        for name in removed:
            assert not (deployed / name).exists()

    def test_keep_state(self, settings, runtime, deployed):
        teardown_command(keep_state=True, settings=settings, runtime=runtime)

        assert (deployed / "provisioning_state.env").exists()
        assert not (deployed / "deploy_summary.txt").exists()

    def test_stop_failure_still_removes(self, settings, runtime, deployed):
        runtime.stop_failures.add("ckan")

        assert teardown_command(settings=settings, runtime=runtime) == 0
        assert not (deployed / "ckan").exists()

    def test_nothing_deployed(self, settings, runtime):
        assert teardown_command(settings=settings, runtime=runtime) == 0
        assert runtime.calls == []

    def test_unknown_flag(self):
        with patch("ndpdeploy.cli.teardown.teardown_command") as mock_teardown:
            assert main(["--force"]) == 1
        mock_teardown.assert_not_called()
