"""HTTP transports and the SOAP-aware HTTP client adapter."""

from __future__ import annotations

from .factory import HttpClientFactory
from .http_client import TransportHttpClient
from .messages import HttpHeaders, HttpRequest, HttpResponse
from .protocol import HttpClient, HttpSender
from .raw_socket import RawSocketSender
from .transport import UrllibSender

__all__ = [
    "HttpClient",
    "HttpClientFactory",
    "HttpHeaders",
    "HttpRequest",
    "HttpResponse",
    "HttpSender",
    "RawSocketSender",
    "TransportHttpClient",
    "UrllibSender",
]
