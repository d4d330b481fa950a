"""MIME attachments carried alongside SOAP messages."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

__all__ = ["SoapAttachment", "normalize_content_id"]


def normalize_content_id(content_id: str) -> str:
    """Strip whitespace, angle brackets and a ``cid:`` prefix from a Content-ID."""
    cid = content_id.strip()
    if cid.lower().startswith("cid:"):
        cid = cid[4:]
    return cid.strip("<>")


def _generate_content_id() -> str:
    return f"{uuid.uuid4().hex}@soaplink"


@dataclass
class SoapAttachment:
    """A single MIME part attached to a SOAP message.

    Attributes:
        content: Raw part payload.
        content_type: MIME type of the payload.
        content_id: Content-ID without angle brackets; generated when empty.
        filename: Optional file name, sent as Content-Disposition.
    """

    content: bytes
    content_type: str = "application/octet-stream"
    content_id: str = field(default_factory=_generate_content_id)
    filename: str | None = None

    def __post_init__(self) -> None:
        self.content_id = normalize_content_id(self.content_id) or _generate_content_id()
