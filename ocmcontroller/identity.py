"""Identity hashing and registry credential helpers."""

from __future__ import annotations

import re
from typing import Mapping

_FNV_OFFSET = 14695981039346656037
_FNV_PRIME = 1099511628211
_MASK = (1 << 64) - 1

_SCHEME_RE = re.compile(r"^([A-Za-z][A-Za-z0-9+.\-]*):")

CONSUMER_TYPE = "OCIRegistry"


def _fnv1_64(data: bytes) -> int:
    """Return the 64-bit FNV-1 hash of data."""
    value = _FNV_OFFSET
    for byte in data:
        value = (value * _FNV_PRIME) & _MASK
        value ^= byte
    return value


def _u64(value: int) -> bytes:
    return value.to_bytes(8, "little")


def _hash_string(text: str) -> int:
    return _fnv1_64(text.encode("utf-8"))


def hash_identity(identity: Mapping[str, str]) -> str:
    """Return the string hash of an identity; the order of its entries does not matter."""
    combined = 0
    for key, value in identity.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise ValueError(
                f"failed to hash identity: keys and values must be strings, "
                f"got {key!r}: {value!r}"
            )
        field = _fnv1_64(_u64(_hash_string(key)) + _u64(_hash_string(value)))
        combined ^= field
    return f"sha-{_fnv1_64(_u64(combined))}"


def construct_repository_name(identity: Mapping[str, str]) -> str:
    """Return the cache repository name for an identity."""
    try:
        return hash_identity(identity)
    except ValueError as exc:
        raise ValueError(f"failed to create hash for identity: {exc}") from exc


def _parse_host(raw: str) -> tuple[str, str]:
    """Return the scheme and host of a URL."""
    if any(ord(char) < 0x20 or ord(char) == 0x7F for char in raw):
        raise ValueError(f"invalid control character in URL: {raw!r}")

    rest = raw.split("#", 1)[0]
    if rest.startswith(":"):
        raise ValueError(f"missing protocol scheme in URL: {raw!r}")

    match = _SCHEME_RE.match(rest)
    if match:
        scheme = match.group(1).lower()
        rest = rest[match.end():]
    else:
        scheme = ""
    rest = rest.split("?", 1)[0]

    if not scheme and not rest.startswith("/"):
        first_segment = rest.split("/", 1)[0]
        if ":" in first_segment:
            raise ValueError(f"first path segment in URL cannot contain colon: {raw!r}")

    host = ""
    if rest.startswith("//") and (scheme or not rest.startswith("///")):
        authority = rest[2:].split("/", 1)[0]
        host = authority.rsplit("@", 1)[-1]
    return scheme, host


def consumer_identity_for_repository(repository_url: str) -> dict[str, str]:
    """Return the credential consumer identity for an OCI repository URL."""
    scheme, host = _parse_host(repository_url)
    if not scheme:
        _, host = _parse_host(f"oci://{repository_url}")
    return {"type": CONSUMER_TYPE, "hostname": host}


def credentials_from_secret(data: Mapping[str, bytes]) -> dict[str, str]:
    """Turn secret data into credential properties, leaving out empty values."""
    properties: dict[str, str] = {}
    for key, value in data.items():
        text = value.decode("utf-8", errors="replace") if isinstance(value, bytes) else str(value)
        if text:
            properties[key] = text
    return properties