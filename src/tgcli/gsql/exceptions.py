"""Exception classes for GSQL sessions."""

from typing import Optional


class GSQLError(Exception):
    """Base exception for GSQL session errors."""

    def __init__(self, message: str, details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self):
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class GSQLTransportError(GSQLError):
    """Exception raised when the GSQL server cannot be reached."""

    pass


class MalformedResponseError(GSQLError):
    """Exception raised when the GSQL server returns an unparseable body."""

    pass


class IncompatibleVersionError(GSQLError):
    """Exception raised when no client version is accepted by the server."""

    pass


class CredentialRejectedError(GSQLError):
    """Exception raised when a compatible server rejects the credentials."""

    pass


class StreamReadError(GSQLError):
    """Exception raised when reading command output fails mid-stream."""

    pass
