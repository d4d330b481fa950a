"""
Client option resolution for soaplink.

Priority: explicit overrides > environment variables > config file >
built-in defaults. Passwords come from the environment or the keychain.
"""

from __future__ import annotations

__all__ = [
    "get_transport_name",
    "load_client_options",
    "parse_option_value",
    "set_option",
    "unset_option",
]

import dataclasses
import logging
import os
from typing import Any

from ..constants import (
    ENV_LOGIN,
    ENV_PASSWORD,
    ENV_PROXY,
    ENV_PROXY_PASSWORD,
    ENV_TIMEOUT,
    ENV_TRANSPORT,
    MAX_TIMEOUT,
    MIN_TIMEOUT,
    TRANSPORT_URLLIB,
)
from ..errors import ConfigError
from ..options import SoapClientOptions
from ._storage import OPTION_TYPES, load_config, load_raw_config, save_config
from .credentials import KIND_PROXY, KIND_SERVER, get_password

_logger = logging.getLogger(__name__)

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off")


def parse_option_value(key: str, raw: str) -> object:
    """Convert a command-line string into the typed value for ``key``.

    Raises:
        ConfigError: On an unknown key or a value of the wrong type.
    """
    try:
        expected = OPTION_TYPES[key]
    except KeyError:
        raise ConfigError(
            f"Unknown option {key!r}. Known options: {', '.join(sorted(OPTION_TYPES))}"
        ) from None

    value = raw.strip()
    if expected is bool:
        if value.lower() in _TRUE_VALUES:
            return True
        if value.lower() in _FALSE_VALUES:
            return False
        raise ConfigError(f"Option {key!r} expects true/false, got {raw!r}")
    try:
        return expected(value)
    except ValueError:
        raise ConfigError(f"Option {key!r} expects {expected.__name__}, got {raw!r}") from None


def set_option(key: str, raw: str) -> object:
    """Validate and persist one option. Returns the stored value."""
    value = parse_option_value(key, raw)
    config = load_raw_config()
    config[key] = value
    save_config(config)
    return value


def unset_option(key: str) -> bool:
    """Remove one option from the config file. Returns True if it was set."""
    config = load_raw_config()
    if config.pop(key, None) is None:
        return False
    save_config(config)
    return True


def _env_timeout() -> float | None:
    raw = os.environ.get(ENV_TIMEOUT, "").strip()
    if not raw:
        return None
    try:
        timeout = float(raw)
    except ValueError:
        _logger.warning("Invalid %s value %r, ignoring", ENV_TIMEOUT, raw)
        return None
    if not MIN_TIMEOUT <= timeout <= MAX_TIMEOUT:
        _logger.warning(
            "%s=%s out of range [%d, %d], ignoring", ENV_TIMEOUT, raw, MIN_TIMEOUT, MAX_TIMEOUT
        )
        return None
    return timeout


def get_transport_name() -> str:
    """Resolve the transport name: env var > config file > urllib."""
    env_value = os.environ.get(ENV_TRANSPORT, "").strip()
    if env_value:
        return env_value
    configured = load_config().get("transport")
    return configured if isinstance(configured, str) else TRANSPORT_URLLIB


def load_client_options(**overrides: Any) -> SoapClientOptions:
    """
    Build ``SoapClientOptions`` from config file, environment and overrides.

    ``None`` overrides are ignored, so argparse namespaces can be passed
    through unfiltered.

    Raises:
        ConfigError: If an override names an unknown option.
    """
    known = {f.name for f in dataclasses.fields(SoapClientOptions)}
    values: dict[str, Any] = {k: v for k, v in load_config().items() if k in known}

    timeout = _env_timeout()
    if timeout is not None:
        values["timeout"] = timeout
    env_proxy = os.environ.get(ENV_PROXY, "").strip()
    if env_proxy:
        values["proxy_host"] = env_proxy
    env_login = os.environ.get(ENV_LOGIN, "").strip()
    if env_login:
        values["login"] = env_login

    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"Unknown option(s): {', '.join(unknown)}")
    values.update({k: v for k, v in overrides.items() if v is not None})

    login = values.get("login")
    if login and not values.get("password"):
        values["password"] = os.environ.get(ENV_PASSWORD) or get_password(KIND_SERVER, login)

    proxy_login = values.get("proxy_login")
    if proxy_login and not values.get("proxy_password"):
        values["proxy_password"] = os.environ.get(ENV_PROXY_PASSWORD) or get_password(
            KIND_PROXY, proxy_login
        )

    _logger.debug("Resolved client options: %s", sorted(k for k in values if "pass" not in k))
    return SoapClientOptions(**values)
