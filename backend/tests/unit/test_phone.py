"""
Unit tests for WhatsApp sender address normalization.
"""

import pytest

from chatdesk.domain.phone import (
    normalize_phone,
    phone_suffix,
    phone_variants,
    username_candidate,
    username_for,
)
from chatdesk.infrastructure.exceptions import InvalidPhoneNumberError


class TestNormalizePhone:
    """Reduce every handset format to the national number."""

    @pytest.mark.parametrize("address", [
        "+989121234567",
        "00989121234567",
        "989121234567",
        "09121234567",
        "9121234567",
        "+98 912 123 4567",
        "(0912) 123-4567",
    ])
    def test_formats_collapse_to_national_number(self, address):
        """All common forms of the same number normalize identically."""
        assert normalize_phone(address) == "9121234567"

    def test_country_code_kept_when_number_is_national_length(self):
        """A national number that happens to start with 98 is not stripped."""
        assert normalize_phone("9812345678") == "9812345678"

    def test_other_country_code(self):
        """Country code is configurable."""
        assert normalize_phone("+14155550123", country_code="1") == "4155550123"

    @pytest.mark.parametrize("address", ["", "12345", "+98", "abc", "000000"])
    def test_too_short_raises(self, address):
        """Fewer than seven digits is not a phone number."""
        with pytest.raises(InvalidPhoneNumberError) as exc_info:
            normalize_phone(address)
        assert exc_info.value.address == address


class TestUsernames:
    """Deterministic usernames for auto-registered senders."""

    def test_username_uses_last_ten_digits(self):
        assert username_for("+989121234567") == "whatsapp_9121234567"

    def test_username_is_stable_across_formats(self):
        """The same person gets the same base username whatever the format."""
        assert username_for("09121234567") == username_for("00989121234567")

    def test_foreign_number_truncated_to_ten_digits(self):
        assert username_for("+14155550123") == "whatsapp_4155550123"

    def test_short_number_zero_padded(self):
        assert username_for("1234567") == "whatsapp_0001234567"

    def test_candidates(self):
        """First attempt is the base, later attempts are suffixed."""
        assert username_candidate("whatsapp_9121234567", 1) == "whatsapp_9121234567"
        assert username_candidate("whatsapp_9121234567", 2) == "whatsapp_9121234567_2"
        assert username_candidate("whatsapp_9121234567", 3) == "whatsapp_9121234567_3"

    def test_phone_suffix(self):
        assert phone_suffix("+989121234567") == "4567"


class TestPhoneVariants:
    """Candidate stored forms used to match hand-entered phones."""

    def test_variants_are_deduplicated_and_raw_first(self):
        assert phone_variants("+989121234567") == [
            "+989121234567",
            "989121234567",
            "9121234567",
            "09121234567",
            "00989121234567",
        ]

    def test_local_format_includes_international_forms(self):
        variants = phone_variants("09121234567")
        assert variants[0] == "09121234567"
        assert "+989121234567" in variants
        assert "989121234567" in variants

    def test_invalid_address_raises(self):
        with pytest.raises(InvalidPhoneNumberError):
            phone_variants("123")
