"""
Phone number normalization for WhatsApp sender addresses.

WhatsiPlus reports senders in whatever form the handset used
(`+98912...`, `0098912...`, `98912...`, `0912...`). Everything that needs
to compare or derive identifiers from an address goes through
`normalize_phone` first.
"""

import re

from chatdesk.infrastructure.exceptions import InvalidPhoneNumberError


MIN_NATIONAL_DIGITS = 7
MAX_NATIONAL_DIGITS = 10
USERNAME_PREFIX = "whatsapp_"
USERNAME_DIGITS = 10

_NON_DIGITS = re.compile(r"\D+")


def normalize_phone(address: str, country_code: str = "98") -> str:
    """
    Reduce a sender address to its national significant number.

    Steps: drop every non-digit, drop a `00` international prefix, drop the
    country code when what is left is longer than a national number, drop
    leading trunk zeros.

    Raises:
        InvalidPhoneNumberError: fewer than MIN_NATIONAL_DIGITS digits remain
    """
    digits = _NON_DIGITS.sub("", address or "")

    if digits.startswith("00"):
        digits = digits[2:]

    if (
        country_code
        and digits.startswith(country_code)
        and len(digits) > MAX_NATIONAL_DIGITS
    ):
        digits = digits[len(country_code):]

    national = digits.lstrip("0")

    if len(national) < MIN_NATIONAL_DIGITS:
        raise InvalidPhoneNumberError(
            f"Address has too few digits to be a phone number: {address!r}",
            address=address,
        )

    return national


def username_for(address: str, country_code: str = "98") -> str:
    """Deterministic base username for an auto-registered sender."""
    national = normalize_phone(address, country_code)
    return USERNAME_PREFIX + national[-USERNAME_DIGITS:].zfill(USERNAME_DIGITS)


def username_candidate(base: str, attempt: int) -> str:
    """`base` for the first attempt, then `base_2`, `base_3`, ..."""
    if attempt <= 1:
        return base
    return f"{base}_{attempt}"


def phone_suffix(address: str, country_code: str = "98", length: int = 4) -> str:
    """Last `length` national digits, used as the placeholder last name."""
    return normalize_phone(address, country_code)[-length:]


def phone_variants(address: str, country_code: str = "98") -> list[str]:
    """
    Every stored form a phone number for this address may plausibly take.

    Used to match users whose `phone` was entered by hand in a different
    format than the one WhatsiPlus reports. The raw address comes first.
    """
    national = normalize_phone(address, country_code)
    candidates = [
        address,
        _NON_DIGITS.sub("", address),
        national,
        "0" + national,
        country_code + national,
        "+" + country_code + national,
        "00" + country_code + national,
    ]

    variants: list[str] = []
    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants
