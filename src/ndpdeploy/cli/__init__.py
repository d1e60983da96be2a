"""
CLI commands for ndpdeploy.
"""

from ndpdeploy.cli.deploy import deploy_command
from ndpdeploy.cli.teardown import teardown_command

__all__ = [
    "deploy_command",
    "teardown_command",
]
