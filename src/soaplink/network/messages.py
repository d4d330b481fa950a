"""
Uniform HTTP request/response shape shared by all transports.

Whatever sender produced an exchange, callers introspect it through these
types: ordered case-insensitive headers, status line parts, and the raw
body bytes.
"""

from __future__ import annotations

__all__ = [
    "HttpHeaders",
    "HttpRequest",
    "HttpResponse",
    "decode_body",
    "format_request_headers",
    "format_response_headers",
    "merge_headers",
]

import logging
import zlib
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from urllib.parse import urlsplit

from ..errors import TransportError

_logger = logging.getLogger(__name__)

_CRLF = "\r\n"


class HttpHeaders:
    """Ordered, case-insensitive, multi-valued HTTP headers."""

    def __init__(self, items: Mapping[str, str] | Iterable[tuple[str, str]] | None = None) -> None:
        self._items: list[tuple[str, str]] = []
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for name, value in pairs:
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        self._items.append((name, str(value)))

    def set(self, name: str, value: str) -> None:
        """Replace all values of ``name`` with a single value."""
        self.remove(name)
        self.add(name, value)

    def remove(self, name: str) -> None:
        lowered = name.lower()
        self._items = [(k, v) for k, v in self._items if k.lower() != lowered]

    def get_all(self, name: str) -> list[str]:
        lowered = name.lower()
        return [v for k, v in self._items if k.lower() == lowered]

    def get(self, name: str, default: str | None = None) -> str | None:
        values = self.get_all(name)
        return values[0] if values else default

    def get_line(self, name: str) -> str:
        """All values of ``name`` joined with ", " (empty string if absent)."""
        return ", ".join(self.get_all(name))

    def names(self) -> list[str]:
        """Distinct header names in first-seen order, original casing."""
        seen: dict[str, str] = {}
        for k, _ in self._items:
            seen.setdefault(k.lower(), k)
        return list(seen.values())

    def items(self) -> list[tuple[str, str]]:
        return list(self._items)

    def copy(self) -> HttpHeaders:
        return HttpHeaders(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and bool(self.get_all(name))

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, HttpHeaders):
            return self._items == other._items
        return NotImplemented

    def __repr__(self) -> str:
        return f"HttpHeaders({self._items!r})"


def merge_headers(base: Mapping[str, str], overrides: Mapping[str, str] | None) -> dict[str, str]:
    """Merge header dicts; override names replace base names case-insensitively."""
    merged = dict(base)
    for name, value in (overrides or {}).items():
        for existing in [k for k in merged if k.lower() == name.lower()]:
            del merged[existing]
        merged[name] = value
    return merged


@dataclass
class HttpRequest:
    """An HTTP request as handed to (or actually sent by) a transport."""

    method: str
    url: str
    headers: HttpHeaders = field(default_factory=HttpHeaders)
    body: bytes | None = None
    version: str = "1.1"

    @property
    def request_target(self) -> str:
        """Origin-form target: path plus query string."""
        parts = urlsplit(self.url)
        target = parts.path or "/"
        if parts.query:
            target = f"{target}?{parts.query}"
        return target


@dataclass
class HttpResponse:
    """A received HTTP response, plus the request that produced it."""

    status_code: int
    reason: str
    headers: HttpHeaders
    body: bytes
    version: str = "1.1"
    request: HttpRequest | None = None

    @property
    def content_type(self) -> str:
        return self.headers.get_line("Content-Type")

    def header_line(self, name: str) -> str:
        return self.headers.get_line(name)


def format_request_headers(request: HttpRequest) -> str:
    """Render the request line and headers as they go over the wire."""
    lines = [f"{request.method} {request.request_target} HTTP/{request.version}"]
    lines.extend(f"{name}: {request.headers.get_line(name)}" for name in request.headers.names())
    return _CRLF.join(lines) + _CRLF + _CRLF


def format_response_headers(response: HttpResponse) -> str:
    """Render the status line and headers as they came over the wire."""
    lines = [f"HTTP/{response.version} {response.status_code} {response.reason}"]
    lines.extend(
        f"{name}: {response.headers.get_line(name)}" for name in response.headers.names()
    )
    return _CRLF.join(lines) + _CRLF + _CRLF


def decode_body(body: bytes, content_encoding: str) -> bytes:
    """
    Undo a gzip/deflate Content-Encoding.

    Unknown or identity encodings are returned unchanged.

    Raises:
        TransportError: If the body is not valid for its declared encoding.
    """
    encoding = content_encoding.strip().lower()
    if not body or encoding in ("", "identity"):
        return body
    try:
        if encoding in ("gzip", "x-gzip"):
            return zlib.decompress(body, 16 + zlib.MAX_WBITS)
        if encoding == "deflate":
            # Servers disagree on whether deflate means zlib-wrapped or raw
            try:
                return zlib.decompress(body)
            except zlib.error:
                return zlib.decompress(body, -zlib.MAX_WBITS)
    except zlib.error as exc:
        raise TransportError(f"Cannot decode {encoding} response body: {exc}") from exc
    _logger.debug("Leaving unsupported Content-Encoding %r undecoded", encoding)
    return body
