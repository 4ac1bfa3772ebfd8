class GasPollerError(Exception):
    """Base exception for all poller errors."""
    pass


class NetworkError(GasPollerError):
    """Raised when the gas price API cannot be reached or answers with an error status."""
    pass


class DecodeError(GasPollerError):
    """Raised when the gas price API response does not have the expected JSON shape."""
    pass


class NotFoundError(GasPollerError):
    """Raised when a lookup row (e.g. an API key) does not exist."""
    pass


class WriteError(GasPollerError):
    """Raised when an insert transaction fails after exhausting its retries."""
    pass


class DatabaseConnectionError(GasPollerError):
    """Raised when the initial database connection cannot be established."""
    pass
