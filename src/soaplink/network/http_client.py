"""
HTTP client adapter used by the SOAP layer.

Wraps a pluggable ``HttpSender`` and adds the pieces every SOAP transport
needs on top of a bare round trip:

- translation of the SOAP options bag into request settings,
- manual redirect handling that follows HTTP 307 only (any other 3xx would
  let the method or body change, which SOAP does not allow),
- uniform introspection of the last request and response.
"""

from __future__ import annotations

__all__ = ["TransportHttpClient"]

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urljoin, urlsplit

from ..errors import ConfigError, RedirectError, TransportError
from ..options import SoapClientOptions, translate_options
from .messages import (
    HttpHeaders,
    HttpRequest,
    HttpResponse,
    format_request_headers,
    format_response_headers,
    merge_headers,
)
from .transport import _with_retry

if TYPE_CHECKING:
    from ..options import RequestSettings
    from .protocol import HttpSender

_logger = logging.getLogger(__name__)

# The only redirect status that preserves method and body
_TEMPORARY_REDIRECT = 307


def _origin(url: str) -> tuple[str, str, int | None]:
    parts = urlsplit(url)
    port = parts.port or {"http": 80, "https": 443}.get(parts.scheme.lower())
    return parts.scheme.lower(), (parts.hostname or "").lower(), port


def _drop_credentials(
    settings: RequestSettings, headers: dict[str, str]
) -> tuple[RequestSettings, dict[str, str]]:
    """Strip server credentials before a redirect leaves the original origin."""
    stripped = {k: v for k, v in headers.items() if k.lower() != "authorization"}
    if settings.auth is not None or len(stripped) != len(headers):
        _logger.info("Redirect changes origin, not forwarding server credentials")
    return settings.merged({"auth": None}), stripped


class TransportHttpClient:
    """HttpClient implementation over any ``HttpSender``."""

    def __init__(
        self,
        sender: HttpSender,
        options: SoapClientOptions | None = None,
        follow_location_max_redirects: int | None = None,
    ) -> None:
        """
        Args:
            sender: Transport performing the actual round trips.
            options: SOAP client options; defaults apply when omitted.
            follow_location_max_redirects: 307 hop limit. Overrides
                ``options.max_redirects`` when given.

        Raises:
            ConfigError: If the options are invalid or ask for an auth
                scheme the sender cannot do.
        """
        options = options or SoapClientOptions()
        self._sender = sender
        self._settings = translate_options(options)
        self.max_redirects = (
            options.max_redirects
            if follow_location_max_redirects is None
            else follow_location_max_redirects
        )

        scheme = self._settings.auth_scheme
        if scheme is not None and scheme not in sender.auth_schemes:
            raise ConfigError(f"The {sender.name} transport does not support {scheme} authentication")

        self._request: HttpRequest | None = None
        self._response: HttpResponse | None = None
        self._error: TransportError | None = None

    @property
    def settings(self) -> RequestSettings:
        return self._settings

    @property
    def sender(self) -> HttpSender:
        return self._sender

    # ── Execution ─────────────────────────────────────────────────────

    def exec(
        self,
        location: str,
        request: bytes | None = None,
        request_headers: dict[str, str] | None = None,
        request_options: dict[str, Any] | None = None,
    ) -> bool:
        """
        Execute an HTTP request, following 307 redirects only.

        POST is used when ``request`` is given, GET otherwise.  Transport
        failures do not raise: they are recorded and reported through
        ``error_message`` / ``last_error``.

        Args:
            location: Target URL.
            request: Request body.
            request_headers: Headers overriding the defaults (case-insensitive).
            request_options: ``RequestSettings`` field overrides for this call.

        Returns:
            True if a response was received.

        Raises:
            ConfigError: If ``request_options`` name unknown settings or the
                transport cannot satisfy them.
        """
        self._request = None
        self._response = None
        self._error = None

        headers = merge_headers(self._settings.headers, request_headers)
        settings = self._settings.merged(request_options)
        method = "POST" if request else "GET"

        url = location
        redirects = 0
        try:
            while True:
                response = self._send_once(method, url, headers, request, settings)
                if response.status_code != _TEMPORARY_REDIRECT:
                    break
                target = response.header_line("Location")
                if not target:
                    _logger.debug("307 from %s without Location header, not following", url)
                    break
                if redirects >= self.max_redirects:
                    raise RedirectError(
                        f"Redirection limit of {self.max_redirects} reached at {url}"
                    )
                redirects += 1
                target = urljoin(url, target)
                if _origin(target) != _origin(url):
                    settings, headers = _drop_credentials(settings, headers)
                url = target
                _logger.info(
                    "Following 307 redirect %d/%d to %s", redirects, self.max_redirects, url
                )
        except TransportError as exc:
            _logger.warning("%s %s failed: %s", method, url, exc)
            self._error = exc
            self._response = None

        return self._response is not None

    def _send_once(
        self,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        settings: RequestSettings,
    ) -> HttpResponse:
        outgoing = HttpRequest(method, url, HttpHeaders(headers), body, settings.version)

        def _do_send() -> HttpResponse:
            return self._sender.send(outgoing, settings)

        response = _with_retry(
            _do_send, max_retries=settings.max_retries, operation=f"{method} {url}"
        )
        self._request = response.request or outgoing
        self._response = response
        return response

    # ── Introspection ─────────────────────────────────────────────────

    @property
    def last_request(self) -> HttpRequest | None:
        return self._request

    @property
    def last_response(self) -> HttpResponse | None:
        return self._response

    @property
    def last_error(self) -> TransportError | None:
        return self._error

    @property
    def error_message(self) -> str:
        if self._error is None:
            return ""
        return str(self._error) or "unknown error"

    @property
    def request_headers(self) -> str:
        """Request line and headers of the last request sent."""
        if self._request is None:
            return ""
        return format_request_headers(self._request)

    @property
    def raw_response(self) -> bytes:
        """Whole response: status line, headers and body."""
        if self._response is None:
            return b""
        return self.response_headers.encode("iso-8859-1", errors="replace") + self._response.body

    @property
    def response_headers(self) -> str:
        if self._response is None:
            return ""
        return format_response_headers(self._response)

    @property
    def response_status_code(self) -> int | None:
        if self._response is None:
            return None
        return self._response.status_code

    @property
    def response_status_message(self) -> str:
        if self._response is None:
            return ""
        return self._response.reason

    @property
    def response_content_type(self) -> str:
        if self._response is None:
            return ""
        return self._response.content_type

    @property
    def response_body(self) -> bytes:
        if self._response is None:
            return b""
        return self._response.body
