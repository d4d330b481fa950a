"""
Translation of the SOAP client options bag into concrete transport settings.

``SoapClientOptions`` mirrors the knobs a SOAP client exposes (proxy,
credentials, certificates, compression, timeouts).  ``translate_options``
turns them into a ``RequestSettings`` value that every ``HttpSender``
understands, so transports never look at the raw options themselves.
"""

from __future__ import annotations

__all__ = [
    "RequestSettings",
    "SoapClientOptions",
    "build_proxy_url",
    "translate_options",
]

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Union
from urllib.parse import quote, urlsplit

from .constants import (
    AUTH_BASIC,
    AUTH_DIGEST,
    AUTH_NTLM,
    COMPRESSION_ACCEPT,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PROXY_HOST,
    DEFAULT_PROXY_PORT,
    DEFAULT_PROXY_SCHEME,
    DEFAULT_TIMEOUT,
    SOAP_1_1,
    USER_AGENT,
)
from .errors import ConfigError

_logger = logging.getLogger(__name__)

_AUTH_SCHEMES = (AUTH_BASIC, AUTH_DIGEST, AUTH_NTLM)

# A credential file, optionally paired with the password that unlocks it
CredentialFile = Union[str, tuple[str, str]]


@dataclass
class SoapClientOptions:
    """Options accepted by the SOAP client.

    All fields are optional; unset fields fall back to transport defaults.
    """

    user_agent: str | None = None
    compression: int | None = None
    connection_timeout: float | None = None
    timeout: float = DEFAULT_TIMEOUT

    proxy_host: str | None = None
    proxy_port: int | None = None
    proxy_login: str | None = None
    proxy_password: str | None = None

    login: str | None = None
    password: str | None = None
    http_auth: str | None = None

    local_cert: str | None = None
    passphrase: str | None = None
    ssl_key: str | None = None
    ssl_keypasswd: str | None = None
    ca_info: str | None = None
    ca_path: str | None = None
    verify_peer: bool = False

    max_redirects: int = DEFAULT_MAX_REDIRECTS
    max_retries: int = DEFAULT_MAX_RETRIES
    legacy_tls: bool = False

    soap_version: str = SOAP_1_1
    attachment_type: str | None = None
    trace: bool = False


@dataclass(frozen=True)
class RequestSettings:
    """Concrete, transport-neutral request settings.

    Attributes:
        headers: Default request headers.
        verify: False (no verification), True (system CAs) or a CA file path.
        http_errors: Raise on 4xx/5xx responses. Always False for SOAP,
            faults travel in 500 responses.
        version: HTTP protocol version.
        allow_redirects: Let the transport follow redirects itself.
        decode_content: Undo gzip/deflate content encoding.
        connect_timeout: Connect timeout in seconds (None: use ``timeout``).
        timeout: Read timeout in seconds.
        proxy: Proxy URL including credentials.
        auth: (user, password, scheme) for server authentication.
        cert: Client certificate file, or (file, passphrase).
        ssl_key: Private key file, or (file, password).
        ca_path: Directory of CA certificates.
        tcp_keepalive: Enable TCP keepalive probes.
        max_retries: Retries on retryable transport errors.
        legacy_tls: TLS 1.0 + RC4 handshake (raw socket transport only).
    """

    headers: dict[str, str] = field(default_factory=dict)
    verify: bool | str = False
    http_errors: bool = False
    version: str = "1.1"
    allow_redirects: bool = False
    decode_content: bool = True
    connect_timeout: float | None = None
    timeout: float = DEFAULT_TIMEOUT
    proxy: str | None = None
    auth: tuple[str, str, str] | None = None
    cert: CredentialFile | None = None
    ssl_key: CredentialFile | None = None
    ca_path: str | None = None
    tcp_keepalive: bool = True
    max_retries: int = DEFAULT_MAX_RETRIES
    legacy_tls: bool = False

    def merged(self, overrides: dict[str, Any] | None) -> RequestSettings:
        """Return a copy with per-request overrides applied.

        Raises:
            ConfigError: If an override names an unknown setting.
        """
        if not overrides:
            return self
        known = {f.name for f in dataclasses.fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            raise ConfigError(f"Unknown request option(s): {', '.join(unknown)}")
        return dataclasses.replace(self, **overrides)

    @property
    def auth_scheme(self) -> str | None:
        return self.auth[2] if self.auth else None


def build_proxy_url(
    host: str,
    port: int | str | None = None,
    login: str | None = None,
    password: str | None = None,
) -> str:
    """
    Assemble a proxy URL from its parts.

    ``host`` may be a bare host name ("proxy.local"), host:port, or a full
    URL. Missing parts are filled in: host ``127.0.0.1``, scheme ``http``,
    port ``8080``. Explicit ``port``/``login``/``password`` take precedence
    over values embedded in ``host``.

    Raises:
        ConfigError: If the embedded port is not a number.
    """
    raw = host.strip()
    parsed = urlsplit(raw if "://" in raw else f"//{raw}")

    scheme = parsed.scheme or DEFAULT_PROXY_SCHEME
    hostname = parsed.hostname or DEFAULT_PROXY_HOST
    if ":" in hostname:
        hostname = f"[{hostname}]"

    try:
        embedded_port = parsed.port
    except ValueError as exc:
        raise ConfigError(f"Invalid proxy port in {host!r}") from exc
    final_port = port or embedded_port or DEFAULT_PROXY_PORT

    user = login if login is not None else parsed.username
    secret = password if password is not None else parsed.password
    userinfo = ""
    if user:
        userinfo = quote(user, safe="")
        if secret:
            userinfo += ":" + quote(secret, safe="")
        userinfo += "@"

    return f"{scheme}://{userinfo}{hostname}:{final_port}"


def _with_password(path: str, password: str | None) -> CredentialFile:
    return (path, password) if password is not None else path


def translate_options(options: SoapClientOptions) -> RequestSettings:
    """
    Map a SOAP client options bag onto concrete request settings.

    Raises:
        ConfigError: If ``http_auth`` names an unsupported scheme.
    """
    headers = {
        "User-Agent": options.user_agent or USER_AGENT,
        "Accept": "*/*",
        "Accept-Encoding": "deflate, gzip",
    }
    settings: dict[str, Any] = {
        "verify": False,
        "timeout": options.timeout,
        "max_retries": options.max_retries,
        "legacy_tls": options.legacy_tls,
    }

    if options.compression is not None and not options.compression & COMPRESSION_ACCEPT:
        headers["Accept-Encoding"] = "identity"
        settings["decode_content"] = False

    if options.connection_timeout is not None:
        settings["connect_timeout"] = options.connection_timeout

    if options.proxy_host is not None:
        settings["proxy"] = build_proxy_url(
            options.proxy_host,
            options.proxy_port,
            options.proxy_login,
            options.proxy_password,
        )

    if options.login is not None:
        scheme = (options.http_auth or AUTH_BASIC).lower()
        if scheme not in _AUTH_SCHEMES:
            raise ConfigError(f"Auth method is not supported: {options.http_auth}")
        settings["auth"] = (options.login, options.password or "", scheme)

    if options.local_cert is not None:
        settings["cert"] = _with_password(options.local_cert, options.passphrase)

    if options.verify_peer:
        settings["verify"] = True

    if options.ca_info is not None:
        settings["verify"] = options.ca_info

    if options.ca_path is not None:
        settings["ca_path"] = options.ca_path
        if settings["verify"] is False:
            settings["verify"] = True

    if options.ssl_key is not None:
        settings["ssl_key"] = _with_password(options.ssl_key, options.ssl_keypasswd)

    _logger.debug(
        "Translated options: proxy=%s, auth=%s, verify=%s",
        "yes" if "proxy" in settings else "no",
        settings.get("auth", (None, None, None))[2],
        settings["verify"],
    )
    return RequestSettings(headers=headers, **settings)
