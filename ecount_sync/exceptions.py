from typing import Optional


class EcountError(Exception):
    """Base error for everything the ECOUNT connector surfaces to callers."""

    default_status = 502

    def __init__(self, message: str, status: Optional[int] = None, details=None):
        super().__init__(message)
        self.message = message
        self.status = status if status is not None else self.default_status
        self.details = details

    @property
    def http_status(self) -> int:
        """Status a view should answer with; never below 400."""
        return max(self.status or 502, 400)


class ConfigurationMissing(EcountError):
    """ECOUNT credentials are not configured; the connector is disabled."""


class ValidationError(EcountError):
    default_status = 400


class RemoteRejected(EcountError):
    """ECOUNT answered, but refused the request."""


class NetworkTimeout(EcountError):
    default_status = 408


class NetworkFailure(EcountError):
    pass
