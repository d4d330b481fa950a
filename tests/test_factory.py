"""Tests for soaplink.network.factory — transport selection by name."""

import pytest

from conftest import FakeSender
from soaplink.errors import ConfigError
from soaplink.network.factory import HttpClientFactory
from soaplink.network.http_client import TransportHttpClient
from soaplink.network.raw_socket import RawSocketSender
from soaplink.network.transport import UrllibSender
from soaplink.options import SoapClientOptions


def test_default_names():
    assert HttpClientFactory().names == ["socket", "urllib"]


def test_urllib_client():
    client = HttpClientFactory().get_http_client(HttpClientFactory.URLLIB)
    assert isinstance(client, TransportHttpClient)
    assert isinstance(client.sender, UrllibSender)


def test_socket_client_with_options():
    options = SoapClientOptions(timeout=15, max_redirects=4)
    client = HttpClientFactory().get_http_client("socket", options)
    assert isinstance(client.sender, RawSocketSender)
    assert client.settings.timeout == 15
    assert client.max_redirects == 4


def test_unknown_name():
    with pytest.raises(ConfigError, match="Unsupported http client: 'curl'"):
        HttpClientFactory().get_http_client("curl")


def test_register_custom_sender():
    factory = HttpClientFactory()
    factory.register("fake", FakeSender)
    assert "fake" in factory.names
    assert isinstance(factory.get_http_client("fake").sender, FakeSender)


def test_constructor_senders_override_defaults():
    factory = HttpClientFactory({"urllib": FakeSender})
    assert isinstance(factory.get_http_client("urllib").sender, FakeSender)


def test_options_validated_per_transport():
    options = SoapClientOptions(login="a", http_auth="ntlm")
    with pytest.raises(ConfigError):
        HttpClientFactory().get_http_client("urllib", options)
    with pytest.raises(ConfigError):
        HttpClientFactory().get_http_client("socket", options)
