"""Request command handlers for soaplink CLI: ``call`` and ``get``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from ...config import get_transport_name, load_client_options
from ...constants import ATTACHMENT_TYPE_SWA
from ...errors import SoapLinkError
from ...soap.client import SoapClient
from ..helpers import attachment_from_file, format_size_kb, safe_read_file, save_attachments


def _read_envelope(source: str) -> bytes | None:
    if source == "-":
        return sys.stdin.buffer.read()
    return safe_read_file(Path(source), "envelope")


def _write_output(data: bytes, output: str | None) -> None:
    if output:
        Path(output).write_bytes(data)
        print(f"Saved {format_size_kb(len(data))} to {output}", file=sys.stderr)
    else:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()


def _build_client(args: argparse.Namespace, attachment_type: str | None = None) -> SoapClient:
    options = load_client_options(
        timeout=args.timeout,
        max_redirects=args.max_redirects,
        proxy_host=args.proxy,
        login=args.login,
        verify_peer=True if args.verify else None,
        soap_version=getattr(args, "soap_version", None),
        attachment_type=attachment_type,
        trace=True,
    )
    return SoapClient(args.url, options, transport=args.transport or get_transport_name())


def cmd_call(args: argparse.Namespace) -> None:
    """Send one SOAP envelope and print the response payload."""
    envelope = _read_envelope(args.envelope)
    if envelope is None:
        sys.exit(1)

    attachments = []
    for path_str in args.attach or []:
        attachment = attachment_from_file(Path(path_str))
        if attachment is None:
            sys.exit(1)
        attachments.append(attachment)

    attachment_type = args.attachment_type or (ATTACHMENT_TYPE_SWA if attachments else None)

    try:
        client = _build_client(args, attachment_type)
        for attachment in attachments:
            client.add_attachment(attachment)
        response = client.call(args.action, envelope)
    except SoapLinkError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.dump_headers:
        print(client.last_request_headers, end="", file=sys.stderr)
        print(client.last_response_headers, end="", file=sys.stderr)

    _write_output(response.content, args.output)

    if args.save_attachments and response.attachments:
        for path in save_attachments(response, Path(args.save_attachments)):
            print(f"Saved attachment {path}", file=sys.stderr)

    if response.status_code is None or response.status_code >= 400:
        print(f"HTTP {response.status_code}", file=sys.stderr)
        sys.exit(1)


def cmd_get(args: argparse.Namespace) -> None:
    """Fetch a document (e.g. a WSDL) through the configured transport."""
    try:
        client = _build_client(args)
        body = client.fetch()
    except SoapLinkError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    if args.dump_headers:
        print(client.last_request_headers, end="", file=sys.stderr)
        print(client.last_response_headers, end="", file=sys.stderr)
    _write_output(body, args.output)
