"""Extraction of one-time generated secrets from command output."""

from __future__ import annotations

import re
from typing import Pattern, Union

import structlog

from ndpdeploy.core.errors import CredentialExtractionError

logger = structlog.get_logger()

ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;?]*[A-Za-z]")
NON_PRINTABLE = re.compile(r"[^\x20-\x7e\n\t]")

# CKAN API tokens are JWTs: "eyJ" header prefix, three dot-separated segments
CATALOG_TOKEN_PATTERN = re.compile(
    r"eyJ[A-Za-z0-9_\-]{10,}\.[A-Za-z0-9_\-]{10,}\.[A-Za-z0-9_\-]{10,}"
)


def sanitize_output(raw_output: str) -> str:
    """Drop terminal escape sequences and non-printable bytes (``\\r`` included)."""
    return NON_PRINTABLE.sub("", ANSI_ESCAPE.sub("", raw_output))


class CredentialExtractor:
    """Pulls a secret out of raw console output.

    Extraction is never retried: re-running a one-shot token generation
    command could mint a second, inconsistent token.
    """

    def extract(self, raw_output: str, pattern: Union[str, Pattern[str]]) -> str:
        compiled = re.compile(pattern) if isinstance(pattern, str) else pattern
        match = compiled.search(sanitize_output(raw_output))
        if match is None:
            logger.error("credential_not_found", pattern=compiled.pattern)
            raise CredentialExtractionError(
                "No credential matching the expected pattern in command output",
                raw_output=raw_output,
                details={"pattern": compiled.pattern, "output": raw_output[-500:]},
            )
        return match.group(0)
