"""
Generic HTTP client transport built on ``urllib.request``.

``UrllibSender`` translates ``RequestSettings`` into an opener (SSL context,
proxy, auth handlers) for every request.  Redirects are never followed here:
3xx responses come back to the caller like any other status, which is what
lets the SOAP adapter apply its own 307-only policy.

Also hosts ``_with_retry``, the exponential backoff helper shared by the
HTTP client adapter.
"""

from __future__ import annotations

__all__ = ["UrllibSender"]

import base64
import http.client
import logging
import ssl
import time
import urllib.error
import urllib.request
from typing import TYPE_CHECKING, Protocol, TypeVar
from urllib.parse import urlsplit

from ..constants import (
    AUTH_BASIC,
    AUTH_DIGEST,
    BYTES_PER_MB,
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BACKOFF,
    DEFAULT_RETRY_DELAY,
    MAX_RESPONSE_SIZE,
    RECV_BUFFER_SIZE,
)
from ..errors import ConfigError, TLSError, TransportError
from .messages import HttpHeaders, HttpRequest, HttpResponse, decode_body

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..options import CredentialFile, RequestSettings

_T = TypeVar("_T")

_logger = logging.getLogger(__name__)

# Hosts we already warned about for disabled certificate verification
_unverified_hosts: set[str] = set()


# ── Retry logic ──────────────────────────────────────────────────────


def _is_retryable_error(exc: TransportError) -> bool:
    """Check if an error is transient and worth retrying."""
    return exc.retryable


def _with_retry(
    fn: Callable[[], _T],
    max_retries: int = DEFAULT_MAX_RETRIES,
    delay: float = DEFAULT_RETRY_DELAY,
    backoff: float = DEFAULT_RETRY_BACKOFF,
    operation: str = "request",
) -> _T:
    """
    Execute a function with exponential backoff retry.

    Args:
        fn: Function to execute (takes no arguments, returns result).
        max_retries: Maximum number of retry attempts.
        delay: Initial delay between retries in seconds.
        backoff: Multiplier for delay after each retry.
        operation: Description of operation for logging.

    Returns:
        Result from successful fn() call.

    Raises:
        Last exception if all retries fail.
    """
    current_delay = delay

    for attempt in range(max_retries + 1):
        try:
            return fn()
        except TransportError as exc:  # noqa: PERF203 -- try-except is the retry mechanism
            if attempt >= max_retries or not _is_retryable_error(exc):
                raise

            _logger.warning(
                "%s failed (attempt %d/%d): %s. Retrying in %.1fs...",
                operation,
                attempt + 1,
                max_retries + 1,
                exc,
                current_delay,
            )
            time.sleep(current_delay)
            current_delay *= backoff

    raise RuntimeError("Retry logic error")


# ── Response reading ─────────────────────────────────────────────────


class _Readable(Protocol):
    def read(self, amt: int = ...) -> bytes: ...


def _read_with_limit(response: _Readable, url: str) -> bytes:
    """Read an HTTP response body with size limit to prevent memory exhaustion."""
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = response.read(RECV_BUFFER_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > MAX_RESPONSE_SIZE:
            raise TransportError(
                f"Response from {url} exceeds {MAX_RESPONSE_SIZE // BYTES_PER_MB} MB limit"
            )
        chunks.append(chunk)
    return b"".join(chunks)


# ── Opener construction ──────────────────────────────────────────────


class _NoRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Redirect handler that hands every 3xx back to the caller."""

    def redirect_request(  # type: ignore[override]  # urllib stubs use incompatible signature
        self,
        req: urllib.request.Request,
        fp: http.client.HTTPResponse,
        code: int,
        msg: str,
        headers: http.client.HTTPMessage,
        newurl: str,
    ) -> None:
        _logger.debug("Not following %d redirect from %s to %s", code, req.full_url, newurl)
        return None


def _split_credential(value: CredentialFile) -> tuple[str, str | None]:
    if isinstance(value, tuple):
        return value[0], value[1]
    return value, None


def _ssl_context(settings: RequestSettings, host: str) -> ssl.SSLContext:
    """Build an SSL context from verify / ca_path / cert / ssl_key settings.

    Raises:
        ConfigError: If certificate or key files cannot be loaded.
    """
    try:
        if settings.verify is False:
            context = ssl.create_default_context()
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
            if host not in _unverified_hosts:
                _unverified_hosts.add(host)
                _logger.warning("TLS certificate verification is disabled for %s", host)
        else:
            cafile = settings.verify if isinstance(settings.verify, str) else None
            context = ssl.create_default_context(cafile=cafile, capath=settings.ca_path)

        if settings.ssl_key is not None and settings.cert is None:
            raise ConfigError("ssl_key requires a client certificate (local_cert)")
        if settings.cert is not None:
            certfile, cert_password = _split_credential(settings.cert)
            keyfile, key_password = (
                _split_credential(settings.ssl_key) if settings.ssl_key else (None, None)
            )
            context.load_cert_chain(
                certfile, keyfile=keyfile, password=key_password or cert_password
            )
    except (ssl.SSLError, OSError) as exc:
        raise ConfigError(f"Cannot load TLS certificates: {exc}") from exc
    return context


def _build_opener(settings: RequestSettings, url: str) -> urllib.request.OpenerDirector:
    parts = urlsplit(url)
    handlers: list[urllib.request.BaseHandler] = [_NoRedirectHandler()]

    if parts.scheme == "https":
        context = _ssl_context(settings, parts.hostname or "")
        handlers.append(urllib.request.HTTPSHandler(context=context))

    if settings.proxy:
        proxies = {"http": settings.proxy, "https": settings.proxy}
        handlers.append(urllib.request.ProxyHandler(proxies))

    if settings.auth is not None and settings.auth_scheme == AUTH_DIGEST:
        user, password, _ = settings.auth
        manager = urllib.request.HTTPPasswordMgrWithDefaultRealm()
        manager.add_password(None, url, user, password)
        handlers.append(urllib.request.HTTPDigestAuthHandler(manager))

    return urllib.request.build_opener(*handlers)


def _open(
    opener: urllib.request.OpenerDirector, req: urllib.request.Request, timeout: float
) -> http.client.HTTPResponse:
    """Open a request through the opener. Thin wrapper to simplify testing."""
    return opener.open(req, timeout=timeout)


def _basic_auth_header(user: str, password: str) -> str:
    token = base64.b64encode(f"{user}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


def _wrap_url_error(exc: urllib.error.URLError, url: str) -> TransportError:
    reason = exc.reason
    if isinstance(reason, ssl.SSLError) or "certificate" in str(reason).lower():
        return TLSError(f"SSL error: {url}: {reason}")
    if isinstance(reason, (TimeoutError, ConnectionError)):
        return TransportError(f"Connection to {url} failed: {reason}", retryable=True)
    return TransportError(f"HTTP request failed: {url}: {reason}")


# ── Sender ───────────────────────────────────────────────────────────


class UrllibSender:
    """HttpSender backed by ``urllib.request`` (system TLS).

    Supports basic auth (sent preemptively) and digest auth (answered on
    challenge). The request timeout is applied as the socket timeout for
    connect and read alike.
    """

    name = "urllib"
    auth_schemes = (AUTH_BASIC, AUTH_DIGEST)

    def send(self, request: HttpRequest, settings: RequestSettings) -> HttpResponse:
        scheme = settings.auth_scheme
        if scheme is not None and scheme not in self.auth_schemes:
            raise ConfigError(f"The {self.name} transport does not support {scheme} authentication")

        headers = request.headers.copy()
        if settings.auth is not None and scheme == AUTH_BASIC:
            headers.set("Authorization", _basic_auth_header(settings.auth[0], settings.auth[1]))

        req = urllib.request.Request(  # noqa: S310 -- scheme checked by the opener handlers
            request.url, data=request.body, method=request.method
        )
        for name, value in headers:
            req.add_header(name, value)

        opener = _build_opener(settings, request.url)
        timeout = settings.timeout
        _logger.debug(
            "%s %s (urllib, timeout=%ss, %d bytes)",
            request.method,
            request.url,
            timeout,
            len(request.body or b""),
        )

        try:
            try:
                raw = _open(opener, req, timeout)
            except urllib.error.HTTPError as exc:
                # http_errors is always off for SOAP: error statuses are responses
                raw = exc  # type: ignore[assignment]
            with raw:
                body = _read_with_limit(raw, request.url)
                status = raw.status
                reason = raw.reason or ""
                version = "1.0" if getattr(raw, "version", 11) == 10 else "1.1"
                response_headers = HttpHeaders(raw.headers.items() if raw.headers else ())
        except urllib.error.URLError as exc:
            raise _wrap_url_error(exc, request.url) from exc
        except TimeoutError as exc:
            raise TransportError(
                f"Connection timed out after {timeout}s: {request.url}", retryable=True
            ) from exc
        except (http.client.HTTPException, ConnectionError) as exc:
            raise TransportError(
                f"Connection to {request.url} broken: {exc}", retryable=True
            ) from exc

        if settings.decode_content:
            encoding = response_headers.get_line("Content-Encoding")
            if encoding:
                body = decode_body(body, encoding)

        _logger.debug("%s %s -> %d (%d bytes)", request.method, request.url, status, len(body))
        # urllib capitalizes stored names; report the caller's casing instead
        sent_headers = headers.copy()
        for name, value in req.unredirected_hdrs.items():
            if name not in sent_headers:
                sent_headers.add(name, value)
        sent = HttpRequest(request.method, req.full_url, sent_headers, request.body, "1.1")
        return HttpResponse(status, reason, response_headers, body, version, sent)
