"""
Transport protocol abstractions.

``HttpSender`` is the pluggable seam: one request in, one response out,
no redirect handling and no raising on HTTP error statuses.  ``HttpClient``
is the introspection interface the SOAP layer talks to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..options import RequestSettings
    from .messages import HttpRequest, HttpResponse


class HttpSender(Protocol):
    """Protocol for a single HTTP round trip.

    Implementations wrap a concrete HTTP stack (urllib, raw sockets, ...).
    They must return 3xx/4xx/5xx responses as ``HttpResponse`` values and
    must not follow redirects; the caller owns that policy.
    """

    name: str
    auth_schemes: tuple[str, ...]

    def send(self, request: HttpRequest, settings: RequestSettings) -> HttpResponse:
        """
        Send one request and return the response.

        The returned response's ``request`` attribute holds the request as
        actually sent, including headers the transport added.

        Raises:
            TransportError: On connection failures or malformed responses.
            TLSError: On TLS handshake or certificate failures.
            ConfigError: If ``settings`` asks for something the transport
                cannot do.
        """
        ...


class HttpClient(Protocol):
    """Protocol for the HTTP client the SOAP layer drives.

    Introspection properties describe the last ``exec`` call and return
    empty values (``""`` or ``None``) when there is nothing to report.
    """

    def exec(
        self,
        location: str,
        request: bytes | None = None,
        request_headers: dict[str, str] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> bool:
        """
        Execute an HTTP request: POST when ``request`` is given, else GET.

        Returns:
            True if a response was received.
        """
        ...

    @property
    def error_message(self) -> str: ...

    @property
    def request_headers(self) -> str: ...

    @property
    def raw_response(self) -> bytes: ...

    @property
    def response_body(self) -> bytes: ...

    @property
    def response_content_type(self) -> str: ...

    @property
    def response_headers(self) -> str: ...

    @property
    def response_status_code(self) -> int | None: ...

    @property
    def response_status_message(self) -> str: ...
