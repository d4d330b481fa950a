"""Configuration command handlers for soaplink CLI: ``config``, ``login``, ``logout``."""

from __future__ import annotations

import argparse
import sys

from ...config import (
    CONFIG_FILE,
    KIND_PROXY,
    KIND_SERVER,
    OPTION_TYPES,
    clear_password,
    get_credential_storage_info,
    load_config,
    save_password,
    set_option,
    unset_option,
)
from ...errors import ConfigError
from ..helpers import prompt_password


def _login_key(args: argparse.Namespace) -> tuple[str, str]:
    """Return (config key, keyring kind) for server or proxy credentials."""
    if args.proxy:
        return "proxy_login", KIND_PROXY
    return "login", KIND_SERVER


def cmd_config(args: argparse.Namespace) -> None:
    """Show, set or unset persisted transport options."""
    if args.action == "show":
        config = load_config()
        print(f"Config file: {CONFIG_FILE}")
        if not config:
            print("  (no options set)")
        for key in sorted(config):
            print(f"  {key} = {config[key]}")
        return

    if not args.key:
        print(f"Error: 'config {args.action}' needs an option name.", file=sys.stderr)
        print(f"Known options: {', '.join(sorted(OPTION_TYPES))}", file=sys.stderr)
        sys.exit(1)

    if args.action == "set":
        if args.value is None:
            print("Error: 'config set' needs a value.", file=sys.stderr)
            sys.exit(1)
        try:
            value = set_option(args.key, args.value)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(f"{args.key} = {value}")
    elif unset_option(args.key):
        print(f"{args.key} removed.")
    else:
        print(f"{args.key} was not set.")


def cmd_login(args: argparse.Namespace) -> None:
    """Store a username in the config file and its password in the keychain."""
    key, kind = _login_key(args)
    username = args.user or load_config().get(key)
    if not isinstance(username, str) or not username:
        print("Error: --user is required (no saved login).", file=sys.stderr)
        sys.exit(1)

    password = prompt_password(f"{kind.capitalize()} password for {username}: ")
    if not save_password(kind, username, password):
        print("Error: could not store password in the system keychain.", file=sys.stderr)
        sys.exit(1)
    set_option(key, username)
    print(f"Saved {kind} credentials for {username} ({get_credential_storage_info()}).")


def cmd_logout(args: argparse.Namespace) -> None:
    """Forget the stored login and its keychain password."""
    key, kind = _login_key(args)
    username = load_config().get(key)
    if isinstance(username, str) and username:
        clear_password(kind, username)
        unset_option(key)
        print(f"Removed {kind} credentials for {username}.")
    else:
        print(f"No {kind} credentials saved.")
