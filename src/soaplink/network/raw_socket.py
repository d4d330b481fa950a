# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Raw socket HTTP transport with tlslite-ng for TLS.

Writes HTTP/1.1 requests by hand over a plain ``socket`` connection and
parses the response itself.  HTTPS goes through tlslite-ng's pure-Python
TLS stack, which also allows the TLS 1.0 + RC4 handshake some old SOAP
appliances still require (``legacy_tls``).

tlslite-ng does not validate server certificate chains, so this transport
refuses requests that ask for peer verification.
"""

from __future__ import annotations

__all__ = ["RawSocketSender", "make_legacy_settings"]

import base64
import ipaddress
import logging
import socket
import time
from pathlib import Path
from typing import TYPE_CHECKING, Union
from urllib.parse import SplitResult, unquote, urlsplit

from tlslite import HandshakeSettings, TLSConnection, X509CertChain, parsePEMKey
from tlslite.errors import BaseTLSException

from ..constants import (
    AUTH_BASIC,
    BYTES_PER_MB,
    MAX_RESPONSE_SIZE,
    RECV_BUFFER_SIZE,
    TCP_KEEPIDLE_SECONDS,
    TCP_KEEPINTVL_SECONDS,
)
from ..errors import ConfigError, TLSError, TransportError
from .messages import HttpHeaders, HttpRequest, HttpResponse, decode_body

if TYPE_CHECKING:
    from ..options import CredentialFile, RequestSettings

_logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}

# Upper bound for a proxy CONNECT reply header block
_MAX_TUNNEL_HEADER = 64 * 1024

_Connection = Union[socket.socket, TLSConnection]


def make_legacy_settings() -> HandshakeSettings:
    """Build TLS 1.0 + RC4 handshake settings for legacy appliances."""
    settings = HandshakeSettings()
    settings.cipherNames = ["rc4"]
    settings.macNames = ["md5", "sha"]
    settings.minVersion = (3, 1)  # TLS 1.0
    return settings


def _validate_header_value(name: str, value: str) -> str:
    """Reject header values containing CR/LF to prevent HTTP header injection (CWE-113)."""
    if "\r" in value or "\n" in value:
        raise TransportError(f"HTTP header '{name}' contains invalid CR/LF characters")
    return value


def _basic_credentials(user: str, password: str) -> str:
    token = base64.b64encode(f"{user}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


def _host_header(host: str, port: int, scheme: str) -> str:
    if ":" in host:
        host = f"[{host}]"
    return host if port == _DEFAULT_PORTS[scheme] else f"{host}:{port}"


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


# ── Status line and body parsing ─────────────────────────────────────


def _parse_status_line(status_line: str) -> tuple[str, int, str]:
    """Parse 'HTTP/1.1 200 OK' into (version, code, reason).

    Raises:
        TransportError: If the status line cannot be parsed.
    """
    parts = status_line.split(maxsplit=2)
    if len(parts) >= 2 and parts[0].startswith("HTTP/"):
        try:
            code = int(parts[1])
        except ValueError:
            pass
        else:
            return parts[0][5:], code, parts[2] if len(parts) > 2 else ""
    raise TransportError(f"Cannot parse HTTP status line: {status_line!r}")


def _decode_chunked(data: bytes) -> bytes:
    """Reassemble a chunked transfer-encoded body.

    Raises:
        TransportError: On a malformed chunk size line.
    """
    chunks: list[bytes] = []
    pos = 0
    while True:
        line_end = data.find(b"\r\n", pos)
        if line_end == -1:
            raise TransportError("Truncated chunked response body")
        size_field = data[pos:line_end].split(b";", 1)[0].strip()
        try:
            size = int(size_field, 16)
        except ValueError as exc:
            raise TransportError(f"Invalid chunk size: {size_field!r}") from exc
        if size == 0:
            break
        start = line_end + 2
        chunks.append(data[start : start + size])
        pos = start + size + 2
    return b"".join(chunks)


def _parse_response(raw: bytes, host: str, port: int) -> tuple[str, int, str, HttpHeaders, bytes]:
    """Split a raw response into (version, code, reason, headers, body).

    Interim 1xx responses are skipped.

    Raises:
        TransportError: If the response has no header terminator.
    """
    while True:
        header_end = raw.find(b"\r\n\r\n")
        if header_end == -1:
            raise TransportError(f"Invalid HTTP response from {host}:{port}")
        head = raw[:header_end].decode("iso-8859-1")
        body = raw[header_end + 4 :]
        lines = head.split("\r\n")
        version, code, reason = _parse_status_line(lines[0])
        if 100 <= code < 200:
            raw = body
            continue
        break

    headers = HttpHeaders()
    for line in lines[1:]:
        name, sep, value = line.partition(":")
        if sep:
            headers.add(name.strip(), value.strip())

    if "chunked" in headers.get_line("Transfer-Encoding").lower():
        body = _decode_chunked(body)
    else:
        length = headers.get("Content-Length")
        if length is not None and length.isdigit():
            body = body[: int(length)]
    return version, code, reason, headers, body


# ── Socket I/O ───────────────────────────────────────────────────────


def _connect(host: str, port: int, timeout: float) -> socket.socket:
    try:
        return socket.create_connection((host, port), timeout=timeout)
    except TimeoutError as exc:
        raise TransportError(
            f"Connection timed out after {timeout}s. Is the server reachable?",
            retryable=True,
        ) from exc
    except OSError as exc:
        raise TransportError(f"Cannot connect to {host}:{port}: {exc}", retryable=True) from exc


def _enable_keepalive(sock: socket.socket) -> None:
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
        if hasattr(socket, "TCP_KEEPIDLE"):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, TCP_KEEPIDLE_SECONDS)
        if hasattr(socket, "TCP_KEEPINTVL"):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, TCP_KEEPINTVL_SECONDS)
    except OSError as exc:
        _logger.debug("Cannot enable TCP keepalive: %s", exc)


def _read_response(conn: _Connection, host: str, port: int, timeout: float) -> bytes:
    """Read until the server closes, with size limit and wall-clock timeout."""
    chunks: list[bytes] = []
    total_size = 0
    deadline = time.monotonic() + timeout
    while True:
        if time.monotonic() > deadline:
            raise TransportError(
                f"Response from {host}:{port} exceeded {timeout}s wall-clock timeout",
                retryable=True,
            )
        chunk = conn.recv(RECV_BUFFER_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > MAX_RESPONSE_SIZE:
            raise TransportError(
                f"Response from {host}:{port} exceeds {MAX_RESPONSE_SIZE // BYTES_PER_MB} MB limit"
            )
        chunks.append(chunk)
    return b"".join(chunks)


def _proxy_authorization(proxy: SplitResult) -> str | None:
    if not proxy.username:
        return None
    return _basic_credentials(unquote(proxy.username), unquote(proxy.password or ""))


def _open_tunnel(sock: socket.socket, host: str, port: int, proxy: SplitResult) -> None:
    """Ask an HTTP proxy for a CONNECT tunnel to host:port.

    Raises:
        TransportError: If the proxy refuses the tunnel.
    """
    authority = f"[{host}]:{port}" if ":" in host else f"{host}:{port}"
    lines = [f"CONNECT {authority} HTTP/1.1", f"Host: {authority}"]
    proxy_auth = _proxy_authorization(proxy)
    if proxy_auth:
        lines.append(f"Proxy-Authorization: {proxy_auth}")
    sock.sendall(("\r\n".join(lines) + "\r\n\r\n").encode("iso-8859-1"))

    reply = b""
    while b"\r\n\r\n" not in reply:
        chunk = sock.recv(1)
        if not chunk or len(reply) > _MAX_TUNNEL_HEADER:
            raise TransportError(f"Proxy closed the CONNECT tunnel to {authority}")
        reply += chunk
    status_line = reply.split(b"\r\n", 1)[0].decode("iso-8859-1")
    _, code, _ = _parse_status_line(status_line)
    if code != 200:
        raise TransportError(f"Proxy CONNECT to {authority} failed: {status_line}")
    _logger.debug("Proxy tunnel established to %s", authority)


# ── TLS ──────────────────────────────────────────────────────────────


def _split_credential(value: CredentialFile) -> tuple[str, str | None]:
    if isinstance(value, tuple):
        return value[0], value[1]
    return value, None


def _load_client_credentials(settings: RequestSettings) -> tuple[X509CertChain | None, object]:
    """Load the client certificate chain and private key for tlslite.

    The key comes from ``ssl_key`` when set, otherwise from the certificate
    file itself (combined PEM).

    Raises:
        ConfigError: If the files cannot be read or parsed.
    """
    if settings.cert is None:
        if settings.ssl_key is not None:
            raise ConfigError("ssl_key requires a client certificate (local_cert)")
        return None, None

    cert_path, cert_password = _split_credential(settings.cert)
    key_path, key_password = (
        _split_credential(settings.ssl_key) if settings.ssl_key else (cert_path, cert_password)
    )
    password = key_password or cert_password
    try:
        chain = X509CertChain()
        chain.parsePemList(Path(cert_path).read_text(encoding="ascii"))
        key = parsePEMKey(
            Path(key_path).read_text(encoding="ascii"),
            private=True,
            passwordCallback=(lambda: password) if password else None,
        )
    except (OSError, SyntaxError, ValueError) as exc:
        raise ConfigError(f"Cannot load client certificate: {exc}") from exc
    return chain, key


def _start_tls(sock: socket.socket, host: str, port: int, settings: RequestSettings) -> TLSConnection:
    tls = TLSConnection(sock)
    # Some servers close TCP without sending a TLS close_notify alert.
    tls.ignoreAbruptClose = True
    chain, key = _load_client_credentials(settings)
    handshake = make_legacy_settings() if settings.legacy_tls else HandshakeSettings()
    tls.handshakeClientCert(
        chain,
        key,
        settings=handshake,
        serverName=None if _is_ip_address(host) else host,
    )
    if settings.legacy_tls:
        _logger.warning(
            "Using legacy TLS (TLS 1.0 + RC4) for %s:%d. "
            "This cipher suite is deprecated and only used for backward compatibility.",
            host,
            port,
        )
    return tls


# ── Sender ───────────────────────────────────────────────────────────


class RawSocketSender:
    """HttpSender that speaks HTTP/1.1 directly over a socket.

    Every request uses its own connection (``Connection: close``). Only
    basic authentication is supported.
    """

    name = "socket"
    auth_schemes = (AUTH_BASIC,)

    def send(self, request: HttpRequest, settings: RequestSettings) -> HttpResponse:
        scheme_auth = settings.auth_scheme
        if scheme_auth is not None and scheme_auth not in self.auth_schemes:
            raise ConfigError(
                f"The {self.name} transport does not support {scheme_auth} authentication"
            )

        parts = urlsplit(request.url)
        scheme = parts.scheme.lower()
        host = parts.hostname
        if not host or scheme not in _DEFAULT_PORTS:
            raise TransportError(f"Invalid URL: {request.url}")
        port = parts.port or _DEFAULT_PORTS[scheme]

        if scheme == "https" and settings.verify:
            raise ConfigError(
                "The socket transport cannot verify server certificates; "
                "use the urllib transport for verified TLS"
            )

        proxy = urlsplit(settings.proxy) if settings.proxy else None
        via_proxy = proxy is not None and proxy.hostname is not None
        connect_host = proxy.hostname if via_proxy and proxy else host
        connect_port = (proxy.port or 8080) if via_proxy and proxy else port
        connect_timeout = settings.connect_timeout or settings.timeout

        headers = HttpHeaders({"Host": _host_header(host, port, scheme)})
        for name, value in request.headers:
            if name.lower() != "host":
                headers.add(name, value)
        if settings.auth is not None:
            headers.set("Authorization", _basic_credentials(settings.auth[0], settings.auth[1]))
        if via_proxy and proxy and scheme == "http":
            proxy_auth = _proxy_authorization(proxy)
            if proxy_auth:
                headers.set("Proxy-Authorization", proxy_auth)
        headers.set("Connection", "close")
        if request.body is not None:
            headers.set("Content-Length", str(len(request.body)))

        # Absolute-form target when talking to a plain HTTP proxy
        target = request.url if via_proxy and scheme == "http" else request.request_target
        header_lines = "".join(
            f"{name}: {_validate_header_value(name, value)}\r\n" for name, value in headers
        )
        request_bytes = (
            f"{request.method} {target} HTTP/{settings.version}\r\n{header_lines}\r\n"
        ).encode("iso-8859-1")
        if request.body:
            request_bytes += request.body

        _logger.debug(
            "%s %s (socket, host=%s, port=%d, timeout=%ss)",
            request.method,
            request.url,
            connect_host,
            connect_port,
            settings.timeout,
        )

        sock = _connect(connect_host, connect_port, connect_timeout)
        try:
            sock.settimeout(settings.timeout)
            if settings.tcp_keepalive:
                _enable_keepalive(sock)
            if via_proxy and proxy and scheme == "https":
                _open_tunnel(sock, host, port, proxy)

            conn: _Connection = _start_tls(sock, host, port, settings) if scheme == "https" else sock
            conn.sendall(request_bytes)
            raw = _read_response(conn, host, port, settings.timeout)
        except (TransportError, ConfigError):
            raise
        except TimeoutError as exc:
            raise TransportError(
                f"Connection timed out after {settings.timeout}s. Is the server reachable?",
                retryable=True,
            ) from exc
        except OSError as exc:
            raise TransportError(
                f"Connection to {host}:{port} failed: {exc}", retryable=True
            ) from exc
        except BaseTLSException as exc:
            raise TLSError(f"TLS error with {host}:{port}: {exc}") from exc
        finally:
            sock.close()

        version, status, reason, response_headers, body = _parse_response(raw, host, port)
        if settings.decode_content:
            encoding = response_headers.get_line("Content-Encoding")
            if encoding:
                body = decode_body(body, encoding)

        _logger.debug("%s %s -> %d (%d bytes)", request.method, request.url, status, len(body))
        sent = HttpRequest(request.method, request.url, headers, request.body, settings.version)
        return HttpResponse(status, reason, response_headers, body, version, sent)
