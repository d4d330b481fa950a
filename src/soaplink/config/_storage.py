"""
Low-level config file I/O for soaplink.

Handles reading, writing, and validating the on-disk config.json.
Used by both config.py and credentials.py.
"""

from __future__ import annotations

__all__ = [
    "CONFIG_DIR",
    "CONFIG_FILE",
    "OPTION_TYPES",
    "load_config",
    "load_raw_config",
    "save_config",
]

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, cast

from ..constants import MAX_TIMEOUT, MIN_TIMEOUT

_logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".soaplink"
CONFIG_FILE = CONFIG_DIR / "config.json"

# Persistable keys and their value types. Passwords are deliberately absent:
# they live in the system keychain.
OPTION_TYPES: dict[str, type] = {
    "transport": str,
    "user_agent": str,
    "compression": int,
    "connection_timeout": float,
    "timeout": float,
    "proxy_host": str,
    "proxy_port": int,
    "proxy_login": str,
    "login": str,
    "http_auth": str,
    "local_cert": str,
    "ssl_key": str,
    "ca_info": str,
    "ca_path": str,
    "verify_peer": bool,
    "max_redirects": int,
    "max_retries": int,
    "legacy_tls": bool,
    "soap_version": str,
    "attachment_type": str,
}

_TIMEOUT_KEYS = ("timeout", "connection_timeout")
_SECRET_KEYS = ("password", "proxy_password", "passphrase", "ssl_keypasswd")


def load_raw_config() -> dict[str, object]:
    """Load raw config dict from disk, preserving all keys.

    Used for merge-and-save operations to preserve unknown keys
    (forward-compatibility with newer config versions).
    """
    try:
        data: Any = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
        if isinstance(data, dict):
            return cast("dict[str, object]", data)
    except FileNotFoundError:
        pass
    except json.JSONDecodeError as e:
        _logger.warning("Config file corrupted, ignoring: %s", e)
    except OSError as e:
        _logger.warning("Cannot read config file: %s", e)
    return {}


def _has_type(value: object, expected: type) -> bool:
    # bool is an int subclass; keep the two apart
    if expected is bool:
        return isinstance(value, bool)
    if expected is float:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    return isinstance(value, expected) and not isinstance(value, bool)


def _validate_config_dict(data: dict[str, object]) -> dict[str, object]:
    """Pick only known keys with correct types."""
    result: dict[str, object] = {}
    for key in _SECRET_KEYS:
        if key in data:
            _logger.warning("Ignoring %r in config file; secrets belong in the keychain", key)
    for key, expected in OPTION_TYPES.items():
        if key not in data:
            continue
        val = data[key]
        if not _has_type(val, expected):
            _logger.warning("Config %s=%r has wrong type, ignoring", key, val)
            continue
        if key in _TIMEOUT_KEYS and not MIN_TIMEOUT <= cast("float", val) <= MAX_TIMEOUT:
            _logger.warning(
                "Config %s=%s out of range [%d, %d], ignoring", key, val, MIN_TIMEOUT, MAX_TIMEOUT
            )
            continue
        result[key] = float(cast("float", val)) if expected is float else val
    return result


def load_config() -> dict[str, object]:
    """Load config from disk, returning only known typed keys."""
    return _validate_config_dict(load_raw_config())


def save_config(config: dict[str, object]) -> None:
    """Save config to disk with restricted permissions (0600).

    Uses atomic write (temp file + rename) to prevent corruption
    if the process is interrupted mid-write.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True, mode=0o700)
    if os.name != "nt":
        try:
            CONFIG_DIR.chmod(0o700)
        except OSError:
            _logger.warning("Failed to set restrictive permissions on %s", CONFIG_DIR)
    content = json.dumps(config, indent=2, ensure_ascii=False) + "\n"
    # Write through the fd directly to avoid a window where the file has wrong permissions
    fd, tmp_path = tempfile.mkstemp(dir=CONFIG_DIR, suffix=".tmp")
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        fd = -1
        if os.name != "nt":
            try:
                tmp.chmod(0o600)
            except OSError:
                _logger.exception(
                    "Failed to set restrictive permissions on %s. "
                    "Config file may be readable by other users.",
                    tmp,
                )
        tmp.replace(CONFIG_FILE)
    except BaseException:
        if fd >= 0:
            os.close(fd)
        tmp.unlink(missing_ok=True)
        raise
