"""
Packaging of SOAP messages with attachments as multipart/related.

Two flavours are supported:

- **SwA** (SOAP with Attachments): the envelope is the root part as-is.
- **MTOM**: the root part is declared ``application/xop+xml`` with the
  envelope type in its ``type`` parameter.

Outgoing requests are only wrapped when they carry attachments; incoming
multipart/related responses are unwrapped into envelope + attachments.
"""

from __future__ import annotations

__all__ = ["MimeFilter"]

import logging
import uuid
from email.message import Message
from email.parser import BytesParser

from ..constants import ATTACHMENT_TYPE_MTOM, ATTACHMENT_TYPE_SWA
from ..errors import AttachmentError, ConfigError
from .attachments import SoapAttachment, normalize_content_id
from .messages import SoapRequest, SoapResponse, content_type_for_version

_logger = logging.getLogger(__name__)

_CRLF = b"\r\n"
_MULTIPART_RELATED = "multipart/related"
_XOP_TYPE = "application/xop+xml"


def _quote(value: str) -> str:
    """Quote a MIME parameter value, escaping backslashes and double quotes."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _render_part(headers: list[tuple[str, str]], payload: bytes) -> bytes:
    for name, value in headers:
        if "\r" in value or "\n" in value:
            raise AttachmentError(f"MIME header '{name}' contains invalid CR/LF characters")
    head = "".join(f"{name}: {value}\r\n" for name, value in headers)
    return head.encode("utf-8") + _CRLF + payload


class MimeFilter:
    """Request/response filter converting between attachments and MIME parts."""

    def __init__(self, attachment_type: str = ATTACHMENT_TYPE_SWA) -> None:
        if attachment_type not in (ATTACHMENT_TYPE_SWA, ATTACHMENT_TYPE_MTOM):
            raise ConfigError(f"Unsupported attachment type: {attachment_type!r}")
        self.attachment_type = attachment_type

    # ── Outgoing ──────────────────────────────────────────────────────

    def filter_request(self, request: SoapRequest) -> None:
        if not request.attachments:
            return

        envelope_type = content_type_for_version(request.version)
        boundary = f"----=_Part_{uuid.uuid4().hex}"
        root_id = f"{uuid.uuid4().hex}@soaplink"

        if self.attachment_type == ATTACHMENT_TYPE_MTOM:
            root_type = f'{_XOP_TYPE}; charset=utf-8; type="{envelope_type}"'
            related_type = _XOP_TYPE
        else:
            root_type = f"{envelope_type}; charset=utf-8"
            related_type = envelope_type

        parts = [
            _render_part(
                [
                    ("Content-Type", root_type),
                    ("Content-Transfer-Encoding", "8bit"),
                    ("Content-ID", f"<{root_id}>"),
                ],
                request.content,
            )
        ]
        for attachment in request.attachments.values():
            headers = [
                ("Content-Type", attachment.content_type),
                ("Content-Transfer-Encoding", "binary"),
                ("Content-ID", f"<{attachment.content_id}>"),
            ]
            if attachment.filename:
                disposition = f"attachment; filename={_quote(attachment.filename)}"
                headers.append(("Content-Disposition", disposition))
            parts.append(_render_part(headers, attachment.content))

        delimiter = b"--" + boundary.encode("ascii")
        body = b"".join(delimiter + _CRLF + part + _CRLF for part in parts)
        body += delimiter + b"--" + _CRLF

        content_type = (
            f'{_MULTIPART_RELATED}; type="{related_type}"; '
            f'boundary="{boundary}"; start="<{root_id}>"'
        )
        if self.attachment_type == ATTACHMENT_TYPE_MTOM:
            content_type += f'; start-info="{envelope_type}"'

        _logger.debug(
            "Packaged request as %s with %d attachment(s), %d bytes",
            self.attachment_type,
            len(request.attachments),
            len(body),
        )
        request.content = body
        request.content_type = content_type

    # ── Incoming ──────────────────────────────────────────────────────

    def filter_response(self, response: SoapResponse) -> None:
        if response.mime_type != _MULTIPART_RELATED:
            return

        header = f"Content-Type: {response.content_type}\r\n\r\n".encode("iso-8859-1", "replace")
        message = BytesParser().parsebytes(header + response.content)
        if not message.is_multipart():
            raise AttachmentError("multipart/related response has no parts")

        parts: list[Message] = list(message.get_payload())  # type: ignore[arg-type]
        if not parts:
            raise AttachmentError("multipart/related response has no parts")

        start = message.get_param("start")
        start_id = normalize_content_id(str(start)) if start else None
        root = parts[0]
        if start_id:
            for part in parts:
                if normalize_content_id(part.get("Content-ID", "")) == start_id:
                    root = part
                    break
            else:
                _logger.debug("Start part %s not found, using first part as root", start_id)

        attachments: dict[str, SoapAttachment] = {}
        for part in parts:
            if part is root:
                continue
            attachment = SoapAttachment(
                content=part.get_payload(decode=True) or b"",  # type: ignore[arg-type]
                content_type=part.get_content_type(),
                content_id=part.get("Content-ID", ""),
                filename=part.get_filename(),
            )
            attachments[attachment.content_id] = attachment

        response.content = root.get_payload(decode=True) or b""  # type: ignore[assignment]
        response.content_type = root.get("Content-Type", "text/xml; charset=utf-8")
        response.attachments = attachments
        _logger.debug("Unpacked %d attachment(s) from multipart response", len(attachments))
