"""Exceptions raised across the SeedMix generation pipeline."""

from typing import Optional


class SeedMixError(Exception):
    """Base class for all SeedMix errors."""

    pass


class ProviderError(SeedMixError):
    """Raised when a music provider call fails for any reason."""

    def __init__(
        self,
        message: str,
        endpoint: Optional[str] = None,
        status: Optional[int] = None
    ):
        super().__init__(message)
        self.endpoint = endpoint
        self.status = status


class LLMError(SeedMixError):
    """Raised when a language-model call fails or returns unparseable output."""

    pass


class NarrativeValidationError(SeedMixError):
    """Raised when model output does not match the expected narrative shape."""

    pass


class GenerationError(SeedMixError):
    """Top-level playlist generation failure with a human-readable reason."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PipelineExhaustedError(GenerationError):
    """Every discovery strategy failed and seed padding could not fill the playlist."""

    pass


class PlaylistNotFoundError(SeedMixError):
    """Raised when a stored playlist id is unknown."""

    pass


class PlaylistAccessError(SeedMixError):
    """Raised when a user acts on a playlist they do not own."""

    pass
