from __future__ import annotations

import re

ADDRESS_PATTERN = re.compile(r"^[0-9A-Fa-f]{2}(:[0-9A-Fa-f]{2}){5}$")


def normalize_address(value: str) -> str:
    """Return the canonical upper-case form of a hardware address.

    Raises ``ValueError`` unless ``value`` is six colon-separated hex
    octets (17 characters).
    """
    if not isinstance(value, str):
        raise ValueError("address must be a string")
    candidate = value.strip()
    if not ADDRESS_PATTERN.match(candidate):
        raise ValueError(f"malformed device address: {value!r}")
    return candidate.upper()

