"""SOAP message pipeline: messages, attachments, filters and the client."""

from __future__ import annotations

from .attachments import SoapAttachment
from .client import SoapClient
from .kernel import ClientSoapKernel, SoapKernel, SoapRequestFilter, SoapResponseFilter
from .messages import SoapRequest, SoapResponse
from .mime_filter import MimeFilter

__all__ = [
    "ClientSoapKernel",
    "MimeFilter",
    "SoapAttachment",
    "SoapClient",
    "SoapKernel",
    "SoapRequest",
    "SoapRequestFilter",
    "SoapResponse",
    "SoapResponseFilter",
]
