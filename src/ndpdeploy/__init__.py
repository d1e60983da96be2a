"""ndpdeploy: idempotent provisioning of NDP endpoint services."""

__version__ = "0.1.0"
