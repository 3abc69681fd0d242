class ResourceSyncError(Exception):
    """Base resource synchronization exception."""


class ProviderError(ResourceSyncError):
    """Raised when a provider could not deliver a usable response."""

    def __init__(self, message: str, provider: str = "unknown") -> None:
        super().__init__(message)
        self.message = message
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """Raised when a provider did not answer within its timeout."""


class MalformedResponseError(ProviderError):
    """Raised when a provider payload is not a list of resources."""


class LimitExceededError(ResourceSyncError):
    """Raised when a synchronization returns more resources than allowed."""

    retryable = True

    def __init__(self, count: int, limit: int) -> None:
        self.count = count
        self.limit = limit
        super().__init__(
            f"Too many resources in this area ({count} found, limit {limit}). "
            "Zoom in to narrow the map view and try again."
        )
