"""Adapters for the external tools a deploy drives: docker, git and the host."""

from ndpdeploy.runtime.base import (
    HEALTHY_STATUSES,
    ContainerRuntime,
    Prerequisites,
    SourceFetcher,
)
from ndpdeploy.runtime.docker import DockerRuntime
from ndpdeploy.runtime.git import GitSourceFetcher
from ndpdeploy.runtime.host import HostPrerequisites, detect_host_ip

__all__ = [
    "HEALTHY_STATUSES",
    "ContainerRuntime",
    "Prerequisites",
    "SourceFetcher",
    "DockerRuntime",
    "GitSourceFetcher",
    "HostPrerequisites",
    "detect_host_ip",
]
