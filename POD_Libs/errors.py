"""
Exception taxonomy for POD Studio.

Classes:
    InvalidRasterError: Source image unreadable or zero-sized
    AssetLoadError: A layer asset failed to load (non-fatal to rendering)
    GenerationError: Base class for generation-capability failures
    AllProvidersFailedError: Every provider in a chain failed
    SupersededRequestError: A generative-fill result arrived for a stale request
"""

from enum import Enum
from typing import List, Optional


class InvalidRasterError(ValueError):
    """Raised when a source raster cannot be decoded or has zero dimensions."""


class AssetLoadError(RuntimeError):
    """Raised when an image-layer asset cannot be loaded."""

    def __init__(self, handle: str, reason: str = ""):
        self.handle = handle
        self.reason = reason
        message = f"Failed to load asset {handle!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class GenerationErrorKind(str, Enum):
    MISSING_CREDENTIAL = "missing_credential"
    RATE_LIMITED = "rate_limited"
    INVALID_RESPONSE = "invalid_response"
    NETWORK_FAILURE = "network_failure"


class GenerationError(RuntimeError):
    """
    Failure reported by an image generation provider.

    Attributes:
        kind: Classified failure kind, used by orchestration to choose
              between falling back and showing a message
        provider: Name of the provider that failed (may be empty)
    """

    kind: GenerationErrorKind = GenerationErrorKind.NETWORK_FAILURE

    def __init__(self, message: str, provider: str = "", kind: Optional[GenerationErrorKind] = None):
        super().__init__(message)
        self.provider = provider
        if kind is not None:
            self.kind = kind

    def __str__(self) -> str:
        base = super().__str__()
        return f"{self.provider}: {base}" if self.provider else base


class MissingCredentialError(GenerationError):
    kind = GenerationErrorKind.MISSING_CREDENTIAL


class RateLimitedError(GenerationError):
    kind = GenerationErrorKind.RATE_LIMITED


class InvalidResponseError(GenerationError):
    kind = GenerationErrorKind.INVALID_RESPONSE


class NetworkFailureError(GenerationError):
    kind = GenerationErrorKind.NETWORK_FAILURE


class AllProvidersFailedError(GenerationError):
    """Raised by a provider chain when no provider produced an image."""

    def __init__(self, errors: List[GenerationError]):
        self.errors = list(errors)
        summary = " | ".join(str(error) for error in self.errors) or "no providers configured"
        kind = self.errors[-1].kind if self.errors else GenerationErrorKind.MISSING_CREDENTIAL
        super().__init__(f"All providers failed. Errors: {summary}", kind=kind)


class SupersededRequestError(RuntimeError):
    """Raised when a generative-fill result belongs to a request that was replaced."""
