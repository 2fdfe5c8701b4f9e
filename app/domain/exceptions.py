"""Domain errors that the API layer maps onto HTTP status codes."""


class ShelfConflictError(ValueError):
    """A shelf with the requested name already exists."""


class ProviderError(RuntimeError):
    """An external AI, extraction or lookup service failed."""

    def __init__(self, message: str, provider: str = "", status_code: int | None = None):
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class ProviderAuthError(ProviderError):
    """The provider rejected or is missing its API key."""


class ProviderRateLimitError(ProviderError):
    """The provider is throttling requests."""


class NothingExtractedError(ProviderError):
    """The page was fetched but no readable text came back."""
