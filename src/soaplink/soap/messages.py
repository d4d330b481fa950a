"""SOAP request and response containers passed through the filter pipeline."""

from __future__ import annotations

__all__ = ["SoapMessage", "SoapRequest", "SoapResponse", "content_type_for_version"]

from dataclasses import dataclass, field
from email.message import Message

from ..constants import SOAP_1_1, SOAP_1_2
from ..errors import ConfigError
from .attachments import SoapAttachment

_CONTENT_TYPES = {
    SOAP_1_1: "text/xml",
    SOAP_1_2: "application/soap+xml",
}


def content_type_for_version(version: str) -> str:
    """Return the envelope MIME type for a SOAP version.

    Raises:
        ConfigError: On an unknown SOAP version.
    """
    try:
        return _CONTENT_TYPES[version]
    except KeyError:
        raise ConfigError(f"Unsupported SOAP version: {version!r}") from None


@dataclass
class SoapMessage:
    """Common fields of SOAP requests and responses.

    ``content`` is the wire payload: the bare envelope, or a whole
    multipart/related body once a MIME filter has packaged it.
    """

    content: bytes
    location: str
    action: str
    version: str = SOAP_1_1
    content_type: str = ""
    attachments: dict[str, SoapAttachment] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.content_type:
            self.content_type = f"{content_type_for_version(self.version)}; charset=utf-8"

    def add_attachment(self, attachment: SoapAttachment) -> None:
        self.attachments[attachment.content_id] = attachment

    @property
    def mime_type(self) -> str:
        """Content type without parameters, lower-cased."""
        return self.content_type.split(";", 1)[0].strip().lower()

    @property
    def charset(self) -> str:
        msg = Message()
        msg["Content-Type"] = self.content_type or "text/xml"
        return msg.get_content_charset() or "utf-8"

    @property
    def text(self) -> str:
        """Payload decoded with the declared charset."""
        return self.content.decode(self.charset, errors="replace")


@dataclass
class SoapRequest(SoapMessage):
    """An outgoing SOAP message."""


@dataclass
class SoapResponse(SoapMessage):
    """An incoming SOAP message and the HTTP status it arrived with."""

    status_code: int | None = None
