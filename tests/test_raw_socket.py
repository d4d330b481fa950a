"""Tests for soaplink.network.raw_socket — hand-written HTTP over sockets and tlslite."""

from unittest.mock import MagicMock, patch

import pytest
from tlslite.errors import BaseTLSException

from soaplink.errors import ConfigError, TLSError, TransportError
from soaplink.network import raw_socket
from soaplink.network.messages import HttpHeaders, HttpRequest
from soaplink.options import RequestSettings

_OK = b"HTTP/1.1 200 OK\r\nContent-Type: text/xml\r\nContent-Length: 5\r\n\r\n<ok/>"


def _fake_socket(*chunks: bytes) -> MagicMock:
    sock = MagicMock()
    sock.recv.side_effect = [*chunks, b""]
    return sock


def _sent(conn: MagicMock) -> bytes:
    return b"".join(c.args[0] for c in conn.sendall.call_args_list)


def _post(url: str = "http://h:8080/svc", body: bytes = b"<env/>") -> HttpRequest:
    return HttpRequest("POST", url, HttpHeaders({"Content-Type": "text/xml"}), body)


# ── Status line and response parsing ─────────────────────────────────


def test_parse_status_line():
    assert raw_socket._parse_status_line("HTTP/1.1 404 Not Found") == ("1.1", 404, "Not Found")


def test_parse_status_line_no_reason():
    assert raw_socket._parse_status_line("HTTP/1.0 204") == ("1.0", 204, "")


@pytest.mark.parametrize("line", ["garbage", "HTTP/1.1 abc OK", ""])
def test_parse_status_line_invalid(line):
    with pytest.raises(TransportError, match="Cannot parse HTTP status line"):
        raw_socket._parse_status_line(line)


def test_parse_response_content_length_truncates():
    raw = b"HTTP/1.1 200 OK\r\nContent-Length: 3\r\n\r\nabcdef"
    version, code, reason, headers, body = raw_socket._parse_response(raw, "h", 80)
    assert (version, code, reason) == ("1.1", 200, "OK")
    assert headers.get("content-length") == "3"
    assert body == b"abc"


def test_parse_response_skips_interim():
    raw = b"HTTP/1.1 100 Continue\r\n\r\nHTTP/1.1 500 Server Error\r\nX: y\r\n\r\n<fault/>"
    _, code, reason, headers, body = raw_socket._parse_response(raw, "h", 80)
    assert code == 500
    assert reason == "Server Error"
    assert headers.get("X") == "y"
    assert body == b"<fault/>"


def test_parse_response_chunked():
    raw = (
        b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\n"
        b"4\r\n<ok/\r\n1;ext=1\r\n>\r\n0\r\n\r\n"
    )
    *_, body = raw_socket._parse_response(raw, "h", 80)
    assert body == b"<ok/>"


def test_parse_response_bad_chunk_size():
    raw = b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\n\r\nzz\r\nabc\r\n"
    with pytest.raises(TransportError, match="Invalid chunk size"):
        raw_socket._parse_response(raw, "h", 80)


def test_parse_response_no_header_terminator():
    with pytest.raises(TransportError, match="Invalid HTTP response"):
        raw_socket._parse_response(b"HTTP/1.1 200 OK\r\n", "h", 80)


# ── Helpers ──────────────────────────────────────────────────────────


def test_host_header_default_port_omitted():
    assert raw_socket._host_header("h", 443, "https") == "h"
    assert raw_socket._host_header("h", 8443, "https") == "h:8443"
    assert raw_socket._host_header("::1", 80, "http") == "[::1]"


def test_validate_header_value_rejects_crlf():
    with pytest.raises(TransportError, match="CR/LF"):
        raw_socket._validate_header_value("X", "a\r\nInjected: 1")


def test_make_legacy_settings():
    settings = raw_socket.make_legacy_settings()
    assert settings.cipherNames == ["rc4"]
    assert settings.minVersion == (3, 1)


# ── RawSocketSender.send over plain HTTP ─────────────────────────────


def test_send_plain_http():
    sock = _fake_socket(_OK)
    with patch.object(raw_socket.socket, "create_connection", return_value=sock) as mock_conn:
        result = raw_socket.RawSocketSender().send(_post(), RequestSettings(timeout=9))

    mock_conn.assert_called_once_with(("h", 8080), timeout=9)
    wire = _sent(sock)
    assert wire.startswith(b"POST /svc HTTP/1.1\r\nHost: h:8080\r\n")
    assert b"Connection: close\r\n" in wire
    assert b"Content-Length: 6\r\n" in wire
    assert wire.endswith(b"\r\n\r\n<env/>")
    assert result.status_code == 200
    assert result.body == b"<ok/>"
    assert result.request is not None
    assert result.request.headers.get("Host") == "h:8080"
    sock.close.assert_called_once()


def test_send_connect_timeout_preferred_for_connect():
    sock = _fake_socket(_OK)
    with patch.object(raw_socket.socket, "create_connection", return_value=sock) as mock_conn:
        raw_socket.RawSocketSender().send(
            _post(), RequestSettings(connect_timeout=2, timeout=30)
        )
    assert mock_conn.call_args.kwargs["timeout"] == 2
    sock.settimeout.assert_called_once_with(30)


def test_send_basic_auth():
    sock = _fake_socket(_OK)
    with patch.object(raw_socket.socket, "create_connection", return_value=sock):
        raw_socket.RawSocketSender().send(
            _post(), RequestSettings(auth=("alice", "secret", "basic"))
        )
    assert b"Authorization: Basic YWxpY2U6c2VjcmV0\r\n" in _sent(sock)


def test_send_digest_rejected():
    with pytest.raises(ConfigError, match="digest"):
        raw_socket.RawSocketSender().send(_post(), RequestSettings(auth=("a", "b", "digest")))


def test_send_invalid_url():
    with pytest.raises(TransportError, match="Invalid URL"):
        raw_socket.RawSocketSender().send(_post("ftp://h/x"), RequestSettings())


def test_send_header_injection_rejected():
    request = HttpRequest("GET", "http://h/", HttpHeaders({"X-Evil": "a\r\nB: c"}))
    with pytest.raises(TransportError, match="CR/LF"):
        raw_socket.RawSocketSender().send(request, RequestSettings())


def test_send_connect_refused_is_retryable():
    with (
        patch.object(
            raw_socket.socket, "create_connection", side_effect=ConnectionRefusedError("refused")
        ),
        pytest.raises(TransportError, match="Cannot connect to h:8080") as exc,
    ):
        raw_socket.RawSocketSender().send(_post(), RequestSettings())
    assert exc.value.retryable is True


def test_send_connect_timeout_is_retryable():
    with (
        patch.object(raw_socket.socket, "create_connection", side_effect=TimeoutError()),
        pytest.raises(TransportError, match="timed out") as exc,
    ):
        raw_socket.RawSocketSender().send(_post(), RequestSettings())
    assert exc.value.retryable is True


def test_send_read_error_closes_socket():
    sock = MagicMock()
    sock.recv.side_effect = ConnectionResetError("reset")
    with (
        patch.object(raw_socket.socket, "create_connection", return_value=sock),
        pytest.raises(TransportError, match="failed") as exc,
    ):
        raw_socket.RawSocketSender().send(_post(), RequestSettings())
    assert exc.value.retryable is True
    sock.close.assert_called_once()


def test_send_decodes_gzip():
    import gzip

    payload = gzip.compress(b"<ok/>")
    raw = (
        b"HTTP/1.1 200 OK\r\nContent-Encoding: gzip\r\nContent-Length: "
        + str(len(payload)).encode()
        + b"\r\n\r\n"
        + payload
    )
    sock = _fake_socket(raw)
    with patch.object(raw_socket.socket, "create_connection", return_value=sock):
        result = raw_socket.RawSocketSender().send(_post(), RequestSettings())
    assert result.body == b"<ok/>"


# ── Proxies ──────────────────────────────────────────────────────────


def test_send_http_via_proxy_uses_absolute_target():
    sock = _fake_socket(_OK)
    settings = RequestSettings(proxy="http://bob:pw@proxy:3128")
    with patch.object(raw_socket.socket, "create_connection", return_value=sock) as mock_conn:
        raw_socket.RawSocketSender().send(_post("http://h/svc"), settings)
    mock_conn.assert_called_once_with(("proxy", 3128), timeout=settings.timeout)
    wire = _sent(sock)
    assert wire.startswith(b"POST http://h/svc HTTP/1.1\r\n")
    assert b"Proxy-Authorization: Basic Ym9iOnB3\r\n" in wire


def test_send_https_via_proxy_opens_tunnel():
    sock = MagicMock()
    sock.recv.side_effect = [bytes([b]) for b in b"HTTP/1.1 200 Connection established\r\n\r\n"]
    tls = _fake_socket(_OK)
    with (
        patch.object(raw_socket.socket, "create_connection", return_value=sock),
        patch.object(raw_socket, "TLSConnection", return_value=tls),
    ):
        result = raw_socket.RawSocketSender().send(
            _post("https://h/svc"), RequestSettings(proxy="http://proxy:3128")
        )
    assert _sent(sock).startswith(b"CONNECT h:443 HTTP/1.1\r\nHost: h:443\r\n")
    assert _sent(tls).startswith(b"POST /svc HTTP/1.1\r\nHost: h\r\n")
    assert result.status_code == 200


def test_send_proxy_tunnel_refused():
    sock = MagicMock()
    sock.recv.side_effect = [bytes([b]) for b in b"HTTP/1.1 403 Forbidden\r\n\r\n"]
    with (
        patch.object(raw_socket.socket, "create_connection", return_value=sock),
        pytest.raises(TransportError, match="Proxy CONNECT to h:443 failed"),
    ):
        raw_socket.RawSocketSender().send(
            _post("https://h/svc"), RequestSettings(proxy="http://proxy:3128")
        )
    sock.close.assert_called_once()


# ── TLS ──────────────────────────────────────────────────────────────


def test_send_https_uses_tlslite():
    sock = MagicMock()
    tls = _fake_socket(_OK)
    with (
        patch.object(raw_socket.socket, "create_connection", return_value=sock),
        patch.object(raw_socket, "TLSConnection", return_value=tls) as mock_tls,
    ):
        result = raw_socket.RawSocketSender().send(_post("https://h/svc"), RequestSettings())
    mock_tls.assert_called_once_with(sock)
    assert tls.handshakeClientCert.call_args.kwargs["serverName"] == "h"
    assert result.body == b"<ok/>"
    sock.sendall.assert_not_called()


def test_send_https_ip_address_has_no_sni():
    tls = _fake_socket(_OK)
    with (
        patch.object(raw_socket.socket, "create_connection", return_value=MagicMock()),
        patch.object(raw_socket, "TLSConnection", return_value=tls),
    ):
        raw_socket.RawSocketSender().send(_post("https://10.0.0.1/svc"), RequestSettings())
    assert tls.handshakeClientCert.call_args.kwargs["serverName"] is None


def test_send_https_legacy_tls_settings():
    tls = _fake_socket(_OK)
    with (
        patch.object(raw_socket.socket, "create_connection", return_value=MagicMock()),
        patch.object(raw_socket, "TLSConnection", return_value=tls),
    ):
        raw_socket.RawSocketSender().send(_post("https://h/svc"), RequestSettings(legacy_tls=True))
    handshake = tls.handshakeClientCert.call_args.kwargs["settings"]
    assert handshake.cipherNames == ["rc4"]


def test_send_https_handshake_failure():
    sock = MagicMock()
    tls = MagicMock()
    tls.handshakeClientCert.side_effect = BaseTLSException("handshake failure")
    with (
        patch.object(raw_socket.socket, "create_connection", return_value=sock),
        patch.object(raw_socket, "TLSConnection", return_value=tls),
        pytest.raises(TLSError, match="TLS error with h:443"),
    ):
        raw_socket.RawSocketSender().send(_post("https://h/svc"), RequestSettings())
    sock.close.assert_called_once()


def test_send_https_refuses_verification():
    with pytest.raises(ConfigError, match="cannot verify"):
        raw_socket.RawSocketSender().send(_post("https://h/svc"), RequestSettings(verify=True))


def test_client_cert_missing_file(tmp_path):
    settings = RequestSettings(cert=str(tmp_path / "missing.pem"))
    with pytest.raises(ConfigError, match="Cannot load client certificate"):
        raw_socket._load_client_credentials(settings)


def test_ssl_key_without_cert():
    with pytest.raises(ConfigError, match="ssl_key requires"):
        raw_socket._load_client_credentials(RequestSettings(ssl_key="/k.pem"))
