"""
soaplink — SOAP client plumbing over pluggable HTTP transports.

Translates SOAP client options into HTTP request settings, sends requests
through urllib or a raw-socket TLS transport, follows 307 redirects and
exposes the last exchange for tracing. Attachments travel as SwA or MTOM.
"""

from __future__ import annotations

from .config.config import load_client_options
from .constants import __version__
from .errors import (
    AttachmentError,
    ConfigError,
    RedirectError,
    SoapLinkError,
    TLSError,
    TransportError,
)
from .network import HttpClientFactory, TransportHttpClient
from .options import RequestSettings, SoapClientOptions, translate_options
from .soap import SoapAttachment, SoapClient, SoapRequest, SoapResponse

__all__ = [
    "AttachmentError",
    "ConfigError",
    "HttpClientFactory",
    "RedirectError",
    "RequestSettings",
    "SoapAttachment",
    "SoapClient",
    "SoapClientOptions",
    "SoapLinkError",
    "SoapRequest",
    "SoapResponse",
    "TLSError",
    "TransportError",
    "TransportHttpClient",
    "__version__",
    "load_client_options",
    "translate_options",
]
