"""
SOAP client glue: filter pipeline + HTTP client adapter.

``SoapClient`` does not build or parse envelopes; it moves opaque envelope
bytes (plus attachments) through the kernel filters and the selected
transport, and hands back the response payload.
"""

from __future__ import annotations

__all__ = ["SoapClient"]

import logging

from ..constants import SOAP_1_1, SOAP_1_2, TRANSPORT_URLLIB
from ..errors import TransportError
from ..network.factory import HttpClientFactory
from ..options import SoapClientOptions
from .attachments import SoapAttachment
from .kernel import ClientSoapKernel, SoapRequestFilter, SoapResponseFilter
from .messages import SoapRequest, SoapResponse, content_type_for_version
from .mime_filter import MimeFilter

_logger = logging.getLogger(__name__)


class SoapClient:
    """Sends SOAP envelopes to an endpoint through a pluggable transport."""

    def __init__(
        self,
        location: str,
        options: SoapClientOptions | None = None,
        transport: str = TRANSPORT_URLLIB,
        factory: HttpClientFactory | None = None,
        kernel: ClientSoapKernel | None = None,
    ) -> None:
        """
        Args:
            location: Default endpoint URL.
            options: Client options (transport settings, SOAP version,
                attachment packaging, tracing).
            transport: Transport name understood by the factory.
            factory: Factory used to build the HTTP client.
            kernel: Filter pipeline; a fresh ``ClientSoapKernel`` by default.

        Raises:
            ConfigError: On invalid options or an unknown transport.
        """
        self.location = location
        self.options = options or SoapClientOptions()
        self.http_client = (factory or HttpClientFactory()).get_http_client(transport, self.options)
        self.kernel = kernel or ClientSoapKernel()
        if self.options.attachment_type:
            self.kernel.register_filter(MimeFilter(self.options.attachment_type))

        self.last_request_headers = ""
        self.last_request = b""
        self.last_response_headers = ""
        self.last_response = b""

    def register_filter(self, soap_filter: SoapRequestFilter | SoapResponseFilter) -> None:
        self.kernel.register_filter(soap_filter)

    def add_attachment(self, attachment: SoapAttachment) -> None:
        """Queue an attachment for the next request."""
        self.kernel.add_attachment(attachment)

    def get_attachment(self, content_id: str) -> SoapAttachment | None:
        """Take an attachment received with the last response."""
        return self.kernel.get_attachment(content_id)

    def _request_headers(self, request: SoapRequest) -> dict[str, str]:
        content_type = request.content_type
        headers: dict[str, str] = {}
        if request.version == SOAP_1_2:
            if request.action:
                content_type = f'{content_type}; action="{request.action}"'
        else:
            headers["SOAPAction"] = f'"{request.action}"'
        headers["Content-Type"] = content_type
        return headers

    def call(
        self,
        action: str,
        envelope: str | bytes,
        location: str | None = None,
        version: str | None = None,
    ) -> SoapResponse:
        """
        Send a SOAP envelope and return the response.

        SOAP faults arrive as HTTP 500 responses and are returned like any
        other response; check ``status_code`` or the payload.

        Args:
            action: SOAP action URI.
            envelope: Serialized envelope (str is encoded as UTF-8).
            location: Endpoint override for this call.
            version: SOAP version override ("1.1" or "1.2").

        Raises:
            TransportError: If no HTTP response could be obtained.
        """
        content = envelope.encode("utf-8") if isinstance(envelope, str) else envelope
        request = SoapRequest(
            content=content,
            location=location or self.location,
            action=action,
            version=version or self.options.soap_version or SOAP_1_1,
        )
        self.kernel.filter_request(request)

        headers = self._request_headers(request)
        _logger.debug(
            "SOAP request: action=%s, url=%s, %d bytes", action, request.location, len(request.content)
        )
        ok = self.http_client.exec(request.location, request.content, headers)
        self._trace(request.content)
        if not ok:
            error = self.http_client.last_error
            raise TransportError(
                f"SOAP request to {request.location} failed: {self.http_client.error_message}",
                retryable=bool(error and error.retryable),
            ) from error

        response = SoapResponse(
            content=self.http_client.response_body,
            location=request.location,
            action=action,
            version=request.version,
            content_type=(
                self.http_client.response_content_type
                or f"{content_type_for_version(request.version)}; charset=utf-8"
            ),
            status_code=self.http_client.response_status_code,
        )
        self.kernel.filter_response(response)
        _logger.debug(
            "SOAP response: status=%s, %d bytes", response.status_code, len(response.content)
        )
        return response

    def fetch(self, location: str | None = None) -> bytes:
        """
        GET a document (typically the WSDL) through the same transport.

        Raises:
            TransportError: If no HTTP response could be obtained or the
                server answered with an error status.
        """
        url = location or self.location
        if not self.http_client.exec(url):
            raise TransportError(
                f"GET {url} failed: {self.http_client.error_message}"
            ) from self.http_client.last_error
        self._trace(b"")
        status = self.http_client.response_status_code or 0
        if status >= 400:
            raise TransportError(
                f"GET {url} returned HTTP {status} {self.http_client.response_status_message}"
            )
        return self.http_client.response_body

    def _trace(self, request_body: bytes) -> None:
        if not self.options.trace:
            return
        self.last_request_headers = self.http_client.request_headers
        self.last_request = request_body
        self.last_response_headers = self.http_client.response_headers
        self.last_response = self.http_client.response_body
