"""
Password storage for soaplink.

Server and proxy passwords are kept in the system keychain via keyring,
keyed by kind and username. They are never written to config.json.
"""

from __future__ import annotations

__all__ = [
    "KIND_PROXY",
    "KIND_SERVER",
    "clear_password",
    "get_credential_storage_info",
    "get_password",
    "save_password",
]

import logging

import keyring
from keyring.errors import KeyringError, PasswordDeleteError

_logger = logging.getLogger(__name__)

_KEYRING_SERVICE = "soaplink"

KIND_SERVER = "server"
KIND_PROXY = "proxy"


def _account(kind: str, username: str) -> str:
    return f"{kind}:{username}"


def save_password(kind: str, username: str, password: str) -> bool:
    """Store a password in the keychain.

    Returns:
        True on success, False if the keychain backend refused.
    """
    try:
        keyring.set_password(_KEYRING_SERVICE, _account(kind, username), password)
    except KeyringError as e:
        _logger.warning("Cannot save %s password to keychain: %s", kind, e)
        return False
    _logger.debug("Saved %s password for %s to keychain", kind, username)
    return True


def get_password(kind: str, username: str) -> str | None:
    """Look up a stored password; None when absent or the keychain is unusable."""
    if not username:
        return None
    try:
        return keyring.get_password(_KEYRING_SERVICE, _account(kind, username))
    except KeyringError as e:
        _logger.debug("Keyring read failed: %s", e)
        return None


def clear_password(kind: str, username: str) -> None:
    """Delete a stored password (missing entries are ignored)."""
    try:
        keyring.delete_password(_KEYRING_SERVICE, _account(kind, username))
        _logger.debug("Deleted %s keyring entry for %s", kind, username)
    except PasswordDeleteError:
        pass
    except KeyringError as e:
        _logger.warning("Keyring delete failed: %s", e)


def get_credential_storage_info() -> str:
    """Return human-readable description of where passwords are stored."""
    backend = keyring.get_keyring()
    module = type(backend).__module__ or ""
    if "macOS" in module:
        return "macOS Keychain"
    if "Windows" in module or "WinVault" in module:
        return "Windows Credential Manager"
    if "SecretService" in module:
        return "Linux Secret Service"
    if "KWallet" in module:
        return "KDE Wallet"
    return f"System keychain ({type(backend).__name__})"
