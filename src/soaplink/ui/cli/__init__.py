"""
Command-line interface for soaplink.

Argument parsing and dispatch. Request commands live in ``call``,
configuration commands in ``setup``.
"""

from __future__ import annotations

import argparse
import logging
import sys

from ...constants import (
    ATTACHMENT_TYPE_MTOM,
    ATTACHMENT_TYPE_SWA,
    SOAP_1_1,
    SOAP_1_2,
    TRANSPORT_SOCKET,
    TRANSPORT_URLLIB,
    __version__,
)
from .call import cmd_call, cmd_get
from .setup import cmd_config, cmd_login, cmd_logout


def _add_transport_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Endpoint URL")
    parser.add_argument(
        "-t",
        "--transport",
        choices=[TRANSPORT_URLLIB, TRANSPORT_SOCKET],
        default=None,
        help="HTTP transport (default: from config, else urllib)",
    )
    parser.add_argument("--timeout", type=float, default=None, help="Read timeout in seconds")
    parser.add_argument(
        "--max-redirects", type=int, default=None, help="Maximum 307 redirects to follow"
    )
    parser.add_argument("--proxy", default=None, help="Proxy host, host:port or URL")
    parser.add_argument("--login", default=None, help="HTTP auth username")
    parser.add_argument(
        "--verify",
        action="store_true",
        default=False,
        help="Verify the server TLS certificate against system CAs",
    )
    parser.add_argument(
        "--dump-headers",
        action="store_true",
        default=False,
        help="Print request and response headers to stderr",
    )
    parser.add_argument("-o", "--output", help="Write the response body to this file")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="soaplink",
        description="Send SOAP requests through pluggable HTTP transports.",
        epilog=(
            "Environment variables:\n"
            "  SOAPLINK_TRANSPORT       urllib or socket\n"
            "  SOAPLINK_TIMEOUT         Read timeout in seconds (default: 120)\n"
            "  SOAPLINK_PROXY           Proxy host, host:port or URL\n"
            "  SOAPLINK_LOGIN           HTTP auth username\n"
            "  SOAPLINK_PASSWORD        HTTP auth password (else keychain)\n"
            "  SOAPLINK_PROXY_PASSWORD  Proxy password (else keychain)\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version", version=f"soaplink {__version__}")
    parser.add_argument(
        "-v", "--verbose", action="count", default=0, help="Log transport activity (-vv for debug)"
    )

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # call
    p_call = sub.add_parser("call", help="POST a SOAP envelope")
    _add_transport_arguments(p_call)
    p_call.add_argument("envelope", help="Envelope file ('-' for stdin)")
    p_call.add_argument("-a", "--action", default="", help="SOAP action URI")
    p_call.add_argument(
        "--soap-version", choices=[SOAP_1_1, SOAP_1_2], default=None, help="SOAP version"
    )
    p_call.add_argument(
        "--attach", action="append", metavar="FILE", help="Attach a file (repeatable)"
    )
    p_call.add_argument(
        "--attachment-type",
        choices=[ATTACHMENT_TYPE_SWA, ATTACHMENT_TYPE_MTOM],
        default=None,
        help="Attachment packaging (default: swa when files are attached)",
    )
    p_call.add_argument(
        "--save-attachments", metavar="DIR", help="Write response attachments to DIR"
    )

    # get
    p_get = sub.add_parser("get", help="GET a document such as a WSDL")
    _add_transport_arguments(p_get)

    # config
    p_config = sub.add_parser("config", help="Show or change saved transport options")
    p_config.add_argument("action", choices=["show", "set", "unset"])
    p_config.add_argument("key", nargs="?", help="Option name")
    p_config.add_argument("value", nargs="?", help="Option value (for 'set')")

    # login / logout
    p_login = sub.add_parser("login", help="Save HTTP auth credentials (password in keychain)")
    p_login.add_argument("-u", "--user", help="Username")
    p_login.add_argument(
        "--proxy", action="store_true", default=False, help="Proxy credentials instead"
    )
    p_logout = sub.add_parser("logout", help="Forget saved HTTP auth credentials")
    p_logout.add_argument(
        "--proxy", action="store_true", default=False, help="Proxy credentials instead"
    )

    return parser


def _configure_logging(verbosity: int) -> None:
    if verbosity <= 0:
        return
    logging.basicConfig(
        level=logging.DEBUG if verbosity > 1 else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.command == "call":
        cmd_call(args)
    elif args.command == "get":
        cmd_get(args)
    elif args.command == "config":
        cmd_config(args)
    elif args.command == "login":
        cmd_login(args)
    elif args.command == "logout":
        cmd_logout(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
