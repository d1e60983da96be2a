"""
Tests for credential extraction from command output.
"""

import re

import pytest
from ndpdeploy.core.errors import CredentialExtractionError
from ndpdeploy.provisioning.credentials import (
    CATALOG_TOKEN_PATTERN,
    CredentialExtractor,
    sanitize_output,
)


class TestSanitizeOutput:
    def test_strips_ansi_and_carriage_returns(self):
        raw = "\x1b[32mAPI Token created:\x1b[0m\r\n\ttoken\r\n"
        assert sanitize_output(raw) == "API Token created:\n\ttoken\n"


class TestCredentialExtractor:
    """Test pattern-based extraction."""

    def test_extracts_catalog_token(self, catalog_token):
        raw = f"2024-05-01 INFO ckan.cli\r\nAPI Token created:\r\n\t{catalog_token}\r\n"

        assert CredentialExtractor().extract(raw, CATALOG_TOKEN_PATTERN) == catalog_token

    def test_token_split_by_escape_codes(self, catalog_token):
        head, tail = catalog_token[:12], catalog_token[12:]
        raw = f"\t{head}\x1b[0m{tail}\r\n"

        assert CredentialExtractor().extract(raw, CATALOG_TOKEN_PATTERN) == catalog_token

    def test_string_pattern(self):
        raw = "secret: abc-123\n"
        assert CredentialExtractor().extract(raw, r"abc-\d+") == "abc-123"

    def test_first_match_wins(self):
        assert CredentialExtractor().extract("k1 k2", re.compile(r"k\d")) == "k1"

    def test_no_match_keeps_raw_output(self):
        raw = "Error: User not found\r\n"

        with pytest.raises(CredentialExtractionError) as exc_info:
            CredentialExtractor().extract(raw, CATALOG_TOKEN_PATTERN)

        assert exc_info.value.raw_output == raw
        assert exc_info.value.details["pattern"] == CATALOG_TOKEN_PATTERN.pattern

    def test_short_jwt_like_text_is_rejected(self):
        with pytest.raises(CredentialExtractionError):
            CredentialExtractor().extract("eyJabc.def.ghi", CATALOG_TOKEN_PATTERN)
