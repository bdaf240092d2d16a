from typing import Optional


class FetchError(Exception):
    """Base exception for a failed fetch. Every subclass is fatal."""
    exit_code = 1

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code is None:
            return self.message
        return f"{self.message} (code {self.code})"


class InputError(FetchError):
    """Raised when the URL is missing or cannot be used."""
    exit_code = 2


class ResolutionError(FetchError):
    """Raised when the connect host cannot be resolved."""
    exit_code = 3


class ConnectionError(FetchError):
    """Raised when the TCP connection cannot be established."""
    exit_code = 4


class SendError(FetchError):
    """Raised when the request is not fully written."""
    exit_code = 5


class ReceiveError(FetchError):
    """Raised when reading the response fails before the peer closes."""
    exit_code = 6
