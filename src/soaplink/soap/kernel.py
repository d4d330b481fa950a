"""
SOAP message filter pipeline.

Filters see every outgoing request and incoming response.  Request filters
run in registration order, response filters in reverse, so a filter that
wraps a request on the way out unwraps the response on the way back in the
mirrored position.

``ClientSoapKernel`` also threads attachments between exchanges: the
attachments queued on the kernel leave with the next request, and the
attachments of each response become the kernel's queue afterwards.
"""

from __future__ import annotations

__all__ = ["ClientSoapKernel", "SoapKernel", "SoapRequestFilter", "SoapResponseFilter"]

import logging
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from .attachments import SoapAttachment, normalize_content_id

if TYPE_CHECKING:
    from .messages import SoapRequest, SoapResponse

_logger = logging.getLogger(__name__)


@runtime_checkable
class SoapRequestFilter(Protocol):
    def filter_request(self, request: SoapRequest) -> None: ...


@runtime_checkable
class SoapResponseFilter(Protocol):
    def filter_response(self, response: SoapResponse) -> None: ...


class SoapKernel:
    """Holds the filter chains and a pool of attachments keyed by Content-ID."""

    def __init__(self) -> None:
        self.attachments: dict[str, SoapAttachment] = {}
        self._request_filters: list[SoapRequestFilter] = []
        self._response_filters: list[SoapResponseFilter] = []

    def register_filter(self, soap_filter: SoapRequestFilter | SoapResponseFilter) -> None:
        """Register a request filter, a response filter, or an object that is both."""
        registered = False
        if isinstance(soap_filter, SoapRequestFilter):
            self._request_filters.append(soap_filter)
            registered = True
        if isinstance(soap_filter, SoapResponseFilter):
            self._response_filters.insert(0, soap_filter)
            registered = True
        if not registered:
            raise TypeError(
                f"{type(soap_filter).__name__} defines neither filter_request nor filter_response"
            )
        _logger.debug("Registered SOAP filter %s", type(soap_filter).__name__)

    @property
    def request_filters(self) -> list[SoapRequestFilter]:
        return list(self._request_filters)

    @property
    def response_filters(self) -> list[SoapResponseFilter]:
        return list(self._response_filters)

    def add_attachment(self, attachment: SoapAttachment) -> None:
        self.attachments[attachment.content_id] = attachment

    def get_attachment(self, content_id: str) -> SoapAttachment | None:
        """Remove and return the attachment with this Content-ID, or None."""
        return self.attachments.pop(normalize_content_id(content_id), None)

    def filter_request(self, request: SoapRequest) -> None:
        for soap_filter in self._request_filters:
            soap_filter.filter_request(request)

    def filter_response(self, response: SoapResponse) -> None:
        for soap_filter in self._response_filters:
            soap_filter.filter_response(response)


class ClientSoapKernel(SoapKernel):
    """Client-side kernel that threads attachments from one exchange to the next."""

    def filter_request(self, request: SoapRequest) -> None:
        request.attachments = self.attachments
        self.attachments = {}
        if request.attachments:
            _logger.debug("Sending %d attachment(s) with request", len(request.attachments))
        super().filter_request(request)

    def filter_response(self, response: SoapResponse) -> None:
        super().filter_response(response)
        self.attachments = dict(response.attachments)
        if self.attachments:
            _logger.debug("Received %d attachment(s) with response", len(self.attachments))
