"""Tests for soaplink.soap.kernel — filter ordering and attachment threading."""

from __future__ import annotations

import pytest

from soaplink.soap.attachments import SoapAttachment, normalize_content_id
from soaplink.soap.kernel import ClientSoapKernel, SoapKernel
from soaplink.soap.messages import SoapRequest, SoapResponse


class _Recorder:
    def __init__(self, name: str, log: list[str]):
        self.name = name
        self.log = log

    def filter_request(self, request):
        self.log.append(f"req:{self.name}")

    def filter_response(self, response):
        self.log.append(f"resp:{self.name}")


class _RequestOnly:
    def __init__(self):
        self.seen = []

    def filter_request(self, request):
        self.seen.append(request)


def _request() -> SoapRequest:
    return SoapRequest(content=b"<env/>", location="http://h/svc", action="urn:a")


def _response(**kwargs) -> SoapResponse:
    return SoapResponse(content=b"<env/>", location="http://h/svc", action="urn:a", **kwargs)


# ── Attachments ──────────────────────────────────────────────────────


@pytest.mark.parametrize("raw", ["part1@host", "<part1@host>", "cid:part1@host", " <part1@host> "])
def test_normalize_content_id(raw):
    assert normalize_content_id(raw) == "part1@host"


def test_attachment_generated_content_id():
    a, b = SoapAttachment(b"x"), SoapAttachment(b"y")
    assert a.content_id.endswith("@soaplink")
    assert a.content_id != b.content_id


def test_attachment_content_id_normalized():
    assert SoapAttachment(b"x", content_id="<abc@h>").content_id == "abc@h"


# ── Filter registration ──────────────────────────────────────────────


def test_request_filters_in_order_response_filters_reversed():
    log: list[str] = []
    kernel = SoapKernel()
    kernel.register_filter(_Recorder("a", log))
    kernel.register_filter(_Recorder("b", log))

    kernel.filter_request(_request())
    kernel.filter_response(_response())
    assert log == ["req:a", "req:b", "resp:b", "resp:a"]


def test_request_only_filter():
    kernel = SoapKernel()
    only = _RequestOnly()
    kernel.register_filter(only)
    assert kernel.request_filters == [only]
    assert kernel.response_filters == []


def test_register_rejects_non_filter():
    with pytest.raises(TypeError, match="neither"):
        SoapKernel().register_filter(object())


def test_filter_lists_are_copies():
    kernel = SoapKernel()
    kernel.register_filter(_RequestOnly())
    kernel.request_filters.clear()
    assert len(kernel.request_filters) == 1


# ── Kernel attachment pool ───────────────────────────────────────────


def test_get_attachment_removes_entry():
    kernel = SoapKernel()
    attachment = SoapAttachment(b"data", content_id="doc@h")
    kernel.add_attachment(attachment)
    assert kernel.get_attachment("cid:doc@h") is attachment
    assert kernel.get_attachment("doc@h") is None


def test_client_kernel_moves_attachments_to_request():
    kernel = ClientSoapKernel()
    attachment = SoapAttachment(b"data", content_id="doc@h")
    kernel.add_attachment(attachment)

    request = _request()
    kernel.filter_request(request)
    assert request.attachments == {"doc@h": attachment}
    assert kernel.attachments == {}


def test_client_kernel_request_filters_see_attachments():
    kernel = ClientSoapKernel()
    seen = _RequestOnly()
    kernel.register_filter(seen)
    kernel.add_attachment(SoapAttachment(b"data", content_id="doc@h"))
    kernel.filter_request(_request())
    assert "doc@h" in seen.seen[0].attachments


def test_client_kernel_adopts_response_attachments():
    kernel = ClientSoapKernel()
    kernel.add_attachment(SoapAttachment(b"stale", content_id="old@h"))
    incoming = SoapAttachment(b"new", content_id="new@h")
    kernel.filter_response(_response(attachments={"new@h": incoming}))
    assert kernel.attachments == {"new@h": incoming}
    assert kernel.get_attachment("<new@h>") is incoming


def test_taking_attachment_leaves_response_intact():
    kernel = ClientSoapKernel()
    incoming = SoapAttachment(b"data", content_id="c1")
    response = _response(attachments={"c1": incoming})
    kernel.filter_response(response)

    assert kernel.get_attachment("c1") is incoming
    assert response.attachments == {"c1": incoming}
    assert kernel.get_attachment("c1") is None
