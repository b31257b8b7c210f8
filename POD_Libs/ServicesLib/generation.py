"""
Image generation provider chain.

Providers are tried in a fixed priority order. A provider that needs a
credential is skipped when none is configured. Every failure is recorded
as a typed GenerationError, and AllProvidersFailedError carries the full
list when nothing succeeds. The chain never retries a provider.

No network code lives here: concrete providers are injected, either as
GenerationProvider subclasses or by wrapping plain callables with
CallableProvider.

Example:
    >>> chain = ProviderChain(
    ...     [CallableProvider("local", generate_fn=my_model)],
    ...     credentials=store.get_api_keys,
    ... )
    >>> result = chain.generate("retro sunset", "vintage")
    >>> result.provider
    'local'
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from POD_Libs.constants import FILL_INSTRUCTION_TEMPLATE
from POD_Libs.errors import (
    AllProvidersFailedError,
    GenerationError,
    InvalidResponseError,
    MissingCredentialError,
    NetworkFailureError,
    RateLimitedError,
)

logger = logging.getLogger(__name__)

Credentials = Union[Mapping[str, str], Callable[[], Mapping[str, str]]]


@dataclass
class GenerationResult:
    image_bytes: bytes
    provider: str


def build_fill_instruction(text: str) -> str:
    return FILL_INSTRUCTION_TEMPLATE.format(text=text.strip())


def classify_http_status(status: int, message: str, provider: str = "") -> GenerationError:
    """Map an HTTP failure status from a provider API to a typed error."""
    if status in (401, 403):
        return MissingCredentialError(f"Authentication failed ({status}): {message}", provider)
    if status == 429:
        return RateLimitedError(f"Rate limited ({status}): {message}", provider)
    if status >= 500:
        return NetworkFailureError(f"Server error ({status}): {message}", provider)
    return InvalidResponseError(f"Request rejected ({status}): {message}", provider)


class GenerationProvider:
    """
    Base class for image generation backends.

    Attributes:
        name: Display name used in results and error messages
        credential_key: Key looked up in the credentials mapping, or None
                        when the provider needs no credential
    """

    name = "provider"
    credential_key: Optional[str] = None

    def generate(self, prompt: str, style: str, reference: Optional[bytes] = None,
                 credential: Optional[str] = None) -> bytes:
        raise NotImplementedError(f"{self.name} does not support generation")

    def fill_region(self, image_bytes: bytes, instruction: str, credential: Optional[str] = None) -> bytes:
        raise NotImplementedError(f"{self.name} does not support region fill")

    @property
    def requires_credential(self) -> bool:
        return self.credential_key is not None

    def supports(self, operation: str) -> bool:
        method = getattr(type(self), operation, None)
        return method is not None and method is not getattr(GenerationProvider, operation)


class CallableProvider(GenerationProvider):
    """Adapt plain functions to the provider interface."""

    def __init__(
        self,
        name: str,
        generate_fn: Optional[Callable[..., bytes]] = None,
        fill_fn: Optional[Callable[..., bytes]] = None,
        credential_key: Optional[str] = None,
    ) -> None:
        self.name = name
        self.credential_key = credential_key
        self._generate_fn = generate_fn
        self._fill_fn = fill_fn

    def supports(self, operation: str) -> bool:
        if operation == "generate":
            return self._generate_fn is not None
        if operation == "fill_region":
            return self._fill_fn is not None
        return False

    def generate(self, prompt: str, style: str, reference: Optional[bytes] = None,
                 credential: Optional[str] = None) -> bytes:
        if self._generate_fn is None:
            return super().generate(prompt, style, reference, credential)
        if self.credential_key is None:
            return self._generate_fn(prompt, style, reference)
        return self._generate_fn(prompt, style, reference, credential)

    def fill_region(self, image_bytes: bytes, instruction: str, credential: Optional[str] = None) -> bytes:
        if self._fill_fn is None:
            return super().fill_region(image_bytes, instruction, credential)
        if self.credential_key is None:
            return self._fill_fn(image_bytes, instruction)
        return self._fill_fn(image_bytes, instruction, credential)


class ProviderChain:
    """
    Ordered list of providers tried until one succeeds.

    Args:
        providers: Providers in priority order
        credentials: Mapping of credential keys to secrets, or a callable
                     returning one (read at call time, e.g. a config
                     store's get_api_keys)
    """

    def __init__(self, providers: Sequence[GenerationProvider], credentials: Optional[Credentials] = None) -> None:
        names = [provider.name for provider in providers]
        if len(set(names)) != len(names):
            raise ValueError(f"Provider names must be unique, got {names}")
        self.providers: List[GenerationProvider] = list(providers)
        self._credentials = credentials

    def _current_credentials(self) -> Mapping[str, str]:
        if self._credentials is None:
            return {}
        if callable(self._credentials):
            return self._credentials() or {}
        return self._credentials

    def ordered(self, preferred: Optional[str] = None) -> List[GenerationProvider]:
        """Providers in trial order, with the preferred one (if any) moved to the front."""
        if preferred is None:
            return list(self.providers)
        first = [p for p in self.providers if p.name == preferred]
        if not first:
            raise ValueError(f"Unknown provider: {preferred}")
        return first + [p for p in self.providers if p.name != preferred]

    def _run(self, operation: str, invoke: Callable[[GenerationProvider, Optional[str]], bytes],
             preferred: Optional[str]) -> GenerationResult:
        credentials = self._current_credentials()
        errors: List[GenerationError] = []

        for provider in self.ordered(preferred):
            if not provider.supports(operation):
                continue

            credential = None
            if provider.credential_key is not None:
                credential = credentials.get(provider.credential_key)
                if not credential:
                    errors.append(MissingCredentialError(
                        f"{provider.credential_key} credential missing", provider.name
                    ))
                    logger.debug("Skipping %s: no credential", provider.name)
                    continue

            logger.debug("Attempting %s with %s", operation, provider.name)
            try:
                data = invoke(provider, credential)
            except GenerationError as e:
                if not e.provider:
                    e.provider = provider.name
                errors.append(e)
                logger.warning("%s failed: %s", provider.name, e)
                continue
            except Exception as e:
                error = NetworkFailureError(str(e) or type(e).__name__, provider.name)
                errors.append(error)
                logger.warning("%s failed: %s", provider.name, error)
                continue

            if not data:
                error = InvalidResponseError("provider returned no image data", provider.name)
                errors.append(error)
                logger.warning("%s failed: %s", provider.name, error)
                continue

            logger.info("%s succeeded with %s", operation, provider.name)
            return GenerationResult(image_bytes=bytes(data), provider=provider.name)

        raise AllProvidersFailedError(errors)

    def generate(self, prompt: str, style: str, reference: Optional[bytes] = None,
                 preferred: Optional[str] = None) -> GenerationResult:
        """Generate a design image from a prompt and style."""
        return self._run(
            "generate",
            lambda provider, credential: provider.generate(prompt, style, reference, credential),
            preferred,
        )

    def fill_region(self, image_bytes: bytes, instruction: str,
                    preferred: Optional[str] = None) -> GenerationResult:
        """Fill the transparent region of image_bytes following instruction."""
        return self._run(
            "fill_region",
            lambda provider, credential: provider.fill_region(image_bytes, instruction, credential),
            preferred,
        )

    def describe(self) -> Dict[str, Any]:
        credentials = self._current_credentials()
        return {
            provider.name: {
                "requires_credential": provider.requires_credential,
                "configured": provider.credential_key is None or bool(credentials.get(provider.credential_key)),
            }
            for provider in self.providers
        }
