"""
Configuration and credential management.

Import from this package directly instead of the individual submodules.
"""

from __future__ import annotations

from ._storage import CONFIG_FILE, OPTION_TYPES, load_config
from .config import (
    get_transport_name,
    load_client_options,
    parse_option_value,
    set_option,
    unset_option,
)
from .credentials import (
    KIND_PROXY,
    KIND_SERVER,
    clear_password,
    get_credential_storage_info,
    get_password,
    save_password,
)

__all__ = [
    "CONFIG_FILE",
    "KIND_PROXY",
    "KIND_SERVER",
    "OPTION_TYPES",
    "clear_password",
    "get_credential_storage_info",
    "get_password",
    "get_transport_name",
    "load_client_options",
    "load_config",
    "parse_option_value",
    "save_password",
    "set_option",
    "unset_option",
]
