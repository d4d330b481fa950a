"""
Application-wide constants for soaplink.

Timeouts, size limits, option flag values and environment variable names
are centralized here.
"""

from __future__ import annotations

import importlib.metadata

try:
    __version__ = importlib.metadata.version("soaplink")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"

__all__ = [
    "ATTACHMENT_TYPE_MTOM",
    "ATTACHMENT_TYPE_SWA",
    "AUTH_BASIC",
    "AUTH_DIGEST",
    "AUTH_NTLM",
    "BYTES_PER_MB",
    "COMPRESSION_ACCEPT",
    "COMPRESSION_DEFLATE",
    "COMPRESSION_GZIP",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_PROXY_HOST",
    "DEFAULT_PROXY_PORT",
    "DEFAULT_PROXY_SCHEME",
    "DEFAULT_RETRY_BACKOFF",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_TIMEOUT",
    "ENV_LOGIN",
    "ENV_PASSWORD",
    "ENV_PROXY",
    "ENV_PROXY_PASSWORD",
    "ENV_TIMEOUT",
    "ENV_TRANSPORT",
    "MAX_RESPONSE_SIZE",
    "MAX_TIMEOUT",
    "MIN_TIMEOUT",
    "RECV_BUFFER_SIZE",
    "SOAP_1_1",
    "SOAP_1_2",
    "TCP_KEEPIDLE_SECONDS",
    "TCP_KEEPINTVL_SECONDS",
    "TRANSPORT_SOCKET",
    "TRANSPORT_URLLIB",
    "USER_AGENT",
    "__version__",
]

USER_AGENT = f"Python-SOAP/soaplink {__version__}"

# ── Timeout values (seconds) ──────────────────────────────────────────

# Read timeout for SOAP calls
DEFAULT_TIMEOUT = 120

MIN_TIMEOUT = 1
MAX_TIMEOUT = 3600

# TCP keepalive probing, applied when the transport controls the socket
TCP_KEEPIDLE_SECONDS = 180
TCP_KEEPINTVL_SECONDS = 60


# ── Size units and limits ─────────────────────────────────────────────

BYTES_PER_MB = 1024 * 1024

# Maximum response body size (50 MB)
MAX_RESPONSE_SIZE = 50 * 1024 * 1024

RECV_BUFFER_SIZE = 8192


# ── Redirect and retry configuration ──────────────────────────────────

# Maximum number of 307 Location hops followed per exec()
DEFAULT_MAX_REDIRECTS = 10

# SOAP calls are not idempotent, so retries are opt-in
DEFAULT_MAX_RETRIES = 0

DEFAULT_RETRY_DELAY = 1.0

DEFAULT_RETRY_BACKOFF = 2.0


# ── Option flag values ────────────────────────────────────────────────

# Compression flags, combined with bitwise OR
COMPRESSION_GZIP = 0x00
COMPRESSION_DEFLATE = 0x10
COMPRESSION_ACCEPT = 0x20

AUTH_BASIC = "basic"
AUTH_DIGEST = "digest"
AUTH_NTLM = "ntlm"

DEFAULT_PROXY_HOST = "127.0.0.1"
DEFAULT_PROXY_PORT = 8080
DEFAULT_PROXY_SCHEME = "http"

SOAP_1_1 = "1.1"
SOAP_1_2 = "1.2"

ATTACHMENT_TYPE_SWA = "swa"
ATTACHMENT_TYPE_MTOM = "mtom"

TRANSPORT_URLLIB = "urllib"
TRANSPORT_SOCKET = "socket"


# ── Environment variable names ──────────────────────────────────────

ENV_TRANSPORT = "SOAPLINK_TRANSPORT"
ENV_TIMEOUT = "SOAPLINK_TIMEOUT"
ENV_PROXY = "SOAPLINK_PROXY"
ENV_LOGIN = "SOAPLINK_LOGIN"
ENV_PASSWORD = "SOAPLINK_PASSWORD"
ENV_PROXY_PASSWORD = "SOAPLINK_PROXY_PASSWORD"
