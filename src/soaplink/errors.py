"""soaplink error types."""

from __future__ import annotations

from typing import Any

__all__ = [
    "AttachmentError",
    "ConfigError",
    "RedirectError",
    "SoapLinkError",
    "TLSError",
    "TransportError",
]


class SoapLinkError(Exception):
    """Base error for soaplink operations."""


class ConfigError(SoapLinkError):
    """Invalid or unsupported option combination."""


class TransportError(SoapLinkError):
    """The HTTP exchange could not be completed.

    Args:
        message: Human-readable error description.
        retryable: Whether this error is transient and worth retrying.
            True for timeouts and refused/reset connections;
            False for protocol violations and TLS configuration issues.
    """

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable

    def __reduce__(self) -> tuple[type[TransportError], tuple[str], dict[str, bool]]:
        """Preserve retryable flag across pickle/unpickle."""
        return (type(self), (str(self),), {"retryable": self.retryable})

    def __setstate__(self, state: dict[str, Any] | None) -> None:
        if state is None:
            return
        self.retryable = state.get("retryable", False)


class TLSError(TransportError):
    """TLS handshake or certificate error."""


class RedirectError(TransportError):
    """The 307 redirect limit was reached."""


class AttachmentError(SoapLinkError):
    """A MIME multipart message could not be built or parsed."""
