"""Unit tests for email deliverability checks."""

import pytest

from automeet.services.email_validation import is_valid_email


class TestIsValidEmail:
    """Tests for is_valid_email."""

    @pytest.mark.parametrize(
        "email",
        [
            "alice@acme.io",
            "bob.tran@company.co.uk",
            "  Alice@Acme.IO  ",
            "  JOHN@GMAIL.COM  ",
            "user.name+tag@example.edu",
        ],
    )
    def test_accepts_real_addresses(self, email):
        assert is_valid_email(email) is True

    @pytest.mark.parametrize(
        "email",
        [
            "test@test.com",
            "test1@company.com",
            "dummy@company.com",
            "fake@company.com",
            "noemail@company.com",
            "no-email@company.com",
            "someone@example.com",
            "someone@example.org",
            "admin@example.org",
            "123@yahoo.com",
            "n/a@gmail.com",
            "12345@company.com",
            "abc@company.com",
            "xyz@company.com",
            "n/a@company.com",
            "none@company.com",
            "null@company.com",
            "undefined@company.com",
            "user@dummy.com",
        ],
    )
    def test_rejects_placeholders(self, email):
        assert is_valid_email(email) is False

    @pytest.mark.parametrize(
        "email",
        ["", None, 42, "plainaddress", "a b@acme.io", "alice@acme", "@acme.io"],
    )
    def test_rejects_malformed(self, email):
        assert is_valid_email(email) is False

    def test_rejects_overlong_address(self):
        email = "a" * 255 + "@gmail.com"
        assert is_valid_email(email) is False

    def test_case_insensitive_placeholder_match(self):
        """Test that placeholder detection ignores case."""
        assert is_valid_email("Dummy@Company.com") is False
