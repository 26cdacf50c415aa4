"""Exceptions raised by imagearena."""


class UnknownProviderError(ValueError):
    """Raised when a provider key is not present in the registry."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Unknown provider: {key}")


class EndpointError(Exception):
    """Raised when the image-generation endpoint reports a failure."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ProviderDisabledError(ValueError):
    """Raised when a registered provider is switched off."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Provider disabled: {key}")
