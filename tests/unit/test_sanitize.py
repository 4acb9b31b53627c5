"""
Unit tests for log redaction and download file names
"""

import pytest

from chatvault.utils.sanitize import mask_token, sanitize_string, safe_filename


@pytest.mark.unit
class TestRedaction:
    """Secrets never reach the logs in full"""

    def test_stripe_keys_redacted(self):
        text = "failed with sk_test_abcdefgh1234 and whsec_abcdefgh1234"

        cleaned = sanitize_string(text)

        assert "abcdefgh1234" not in cleaned
        assert "sk_***REDACTED***" in cleaned
        assert "whsec_***REDACTED***" in cleaned

    def test_bearer_token_redacted(self):
        assert sanitize_string("Authorization: Bearer eyJ.abc.def") == "Authorization: Bearer ***REDACTED***"

    def test_mask_token_keeps_prefix(self):
        assert mask_token("eyJhbGciOiJSUzI1NiJ9.payload.sig") == "eyJhbGciOiJS...***"

    @pytest.mark.parametrize("token", ["", None, "short"])
    def test_mask_token_short_or_missing(self, token):
        assert "***" in mask_token(token)
        assert mask_token(token) != token


@pytest.mark.unit
class TestSafeFilename:
    """Chat titles as archive entry names"""

    def test_reserved_characters_replaced(self):
        assert safe_filename('Q1: plan/review?') == "Q1_ plan_review_"

    def test_blank_title_falls_back(self):
        assert safe_filename("  ..  ") == "chat"

    def test_length_capped(self):
        assert len(safe_filename("x" * 500)) == 150
