"""Content-derived fingerprints for methods, exposed as static constants and a runtime registry."""

from .emitter import EmissionError, Emitter, RuntimeArtifact, StaticArtifact, emit
from .fingerprint import EMPTY_DIGEST, FingerprintError, digest
from .models import BodyContent, MemberStamp, SourceLocation, UnitDescriptor, UnitRecord
from .normalizer import NormalizationError, normalize
from .pipeline import GenerationResult, HashStampPipeline
from .registry import Registry, RegistryDiff, build, diff
from .resolver import UnresolvedCollisionError, identifier_safe, resolve

__all__ = [
    "BodyContent",
    "EMPTY_DIGEST",
    "EmissionError",
    "Emitter",
    "FingerprintError",
    "GenerationResult",
    "HashStampPipeline",
    "MemberStamp",
    "NormalizationError",
    "Registry",
    "RegistryDiff",
    "RuntimeArtifact",
    "SourceLocation",
    "StaticArtifact",
    "UnitDescriptor",
    "UnitRecord",
    "UnresolvedCollisionError",
    "build",
    "diff",
    "digest",
    "emit",
    "identifier_safe",
    "normalize",
    "resolve",
]
