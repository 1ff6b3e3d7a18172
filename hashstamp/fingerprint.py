"""Deterministic digests for canonical unit bodies."""

from __future__ import annotations

import hashlib

from .models import UnitDescriptor, UnitRecord
from .normalizer import NormalizationError, normalize


class FingerprintError(RuntimeError):
    """Raised when canonical text cannot be encoded for hashing."""


def digest(text: str) -> str:
    """Return the 64-character lowercase SHA-256 hex digest of `text`."""
    try:
        payload = text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise FingerprintError(f"Canonical text is not encodable as UTF-8: {exc}") from exc
    return hashlib.sha256(payload).hexdigest()


# Digest of zero bytes; the value every bodiless unit carries.
EMPTY_DIGEST = digest("")


def fingerprint_unit(descriptor: UnitDescriptor) -> UnitRecord:
    """Normalize and hash one descriptor into an unresolved record."""
    if not descriptor.has_symbols:
        raise ValueError(f"Descriptor {descriptor.member_name!r} is missing symbol information")
    try:
        value = digest(normalize(descriptor.body))
    except NormalizationError as exc:
        raise NormalizationError(f"{_describe(descriptor)}: {exc}") from exc
    except FingerprintError as exc:
        raise FingerprintError(f"{_describe(descriptor)}: {exc}") from exc
    return UnitRecord(
        namespace=descriptor.namespace or "",
        type_name=descriptor.type_name or "",
        member_name=descriptor.member_name,
        resolved_name=descriptor.member_name,
        qualified_signature=descriptor.qualified_signature,
        digest=value,
        location=descriptor.location,
    )


def _describe(descriptor: UnitDescriptor) -> str:
    where = f" at {descriptor.location}" if descriptor.location else ""
    return f"{descriptor.namespace}.{descriptor.type_name}.{descriptor.qualified_signature}{where}"


__all__ = ["EMPTY_DIGEST", "FingerprintError", "digest", "fingerprint_unit"]
