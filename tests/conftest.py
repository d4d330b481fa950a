"""Shared test fixtures for soaplink test suite."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from soaplink.constants import AUTH_BASIC, AUTH_DIGEST, AUTH_NTLM
from soaplink.network.messages import HttpHeaders, HttpRequest, HttpResponse


def make_response(
    status: int = 200,
    body: bytes = b"<ok/>",
    headers: dict[str, str] | None = None,
    reason: str = "OK",
) -> HttpResponse:
    """Build an HttpResponse with sensible defaults."""
    return HttpResponse(
        status_code=status,
        reason=reason,
        headers=HttpHeaders(headers or {"Content-Type": "text/xml; charset=utf-8"}),
        body=body,
    )


class FakeSender:
    """In-memory HttpSender returning queued responses or raising queued errors."""

    name = "fake"
    auth_schemes = (AUTH_BASIC, AUTH_DIGEST, AUTH_NTLM)

    def __init__(self, *results):
        self.results = list(results)
        self.sent: list[tuple[HttpRequest, object]] = []

    def send(self, request, settings):
        self.sent.append((request, settings))
        result = self.results.pop(0) if self.results else make_response()
        if isinstance(result, Exception):
            raise result
        if result.request is None:
            result.request = request
        return result


@pytest.fixture
def fake_sender():
    return FakeSender()


@pytest.fixture
def config_dir(tmp_path):
    """Redirect the config file to a temp directory and clear SOAPLINK_* env vars."""
    config_file = tmp_path / "config.json"
    env = {
        "SOAPLINK_TRANSPORT": "",
        "SOAPLINK_TIMEOUT": "",
        "SOAPLINK_PROXY": "",
        "SOAPLINK_LOGIN": "",
        "SOAPLINK_PASSWORD": "",
        "SOAPLINK_PROXY_PASSWORD": "",
    }
    with (
        patch("soaplink.config._storage.CONFIG_DIR", tmp_path),
        patch("soaplink.config._storage.CONFIG_FILE", config_file),
        patch.dict("os.environ", env),
    ):
        yield tmp_path, config_file
