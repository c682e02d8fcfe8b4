"""
Custom exceptions for the VNC brute force system.

Per-attempt failures (ConnectionFailedException and subclasses) are contained
inside the worker that hit them. ConfigurationError is fatal at startup.
"""

from typing import Iterable


class VncBruteException(Exception):
    """Base exception for all vncbrute errors."""
    pass


class ConnectionFailedException(VncBruteException):
    """Raised when a single authentication attempt cannot complete."""

    def __init__(self, host: str, port: int, reason: str):
        self.host = host
        self.port = port
        self.reason = reason
        super().__init__(f"Failed to talk to {host}:{port}: {reason}")


class HandshakeError(ConnectionFailedException):
    """Raised when the server closes early or sends a short/malformed reply."""
    pass


class UnsupportedSecurityTypeError(ConnectionFailedException):
    """Raised when the server does not offer VNC password authentication."""

    def __init__(self, host: str, port: int, offered: Iterable[int]):
        self.offered = list(offered)
        super().__init__(
            host, port,
            f"VNC authentication not offered (security types: {self.offered})"
        )


class ConfigurationError(VncBruteException):
    """Raised when configuration or the password file is invalid or missing."""
    pass
