"""Named construction of HTTP clients over the available transports."""

from __future__ import annotations

__all__ = ["HttpClientFactory"]

import logging
from typing import TYPE_CHECKING

from ..constants import TRANSPORT_SOCKET, TRANSPORT_URLLIB
from ..errors import ConfigError
from .http_client import TransportHttpClient
from .raw_socket import RawSocketSender
from .transport import UrllibSender

if TYPE_CHECKING:
    from collections.abc import Callable

    from ..options import SoapClientOptions
    from .protocol import HttpSender

_logger = logging.getLogger(__name__)


class HttpClientFactory:
    """Builds ``TransportHttpClient`` instances by transport name.

    ``urllib`` is the generic HTTP client, ``socket`` the raw socket
    transport. Extra transports (or test doubles) can be registered under
    their own names.
    """

    URLLIB = TRANSPORT_URLLIB
    SOCKET = TRANSPORT_SOCKET

    def __init__(self, senders: dict[str, Callable[[], HttpSender]] | None = None) -> None:
        self._senders: dict[str, Callable[[], HttpSender]] = {
            self.URLLIB: UrllibSender,
            self.SOCKET: RawSocketSender,
        }
        if senders:
            self._senders.update(senders)

    def register(self, name: str, sender_factory: Callable[[], HttpSender]) -> None:
        self._senders[name] = sender_factory

    @property
    def names(self) -> list[str]:
        return sorted(self._senders)

    def get_http_client(self, name: str, options: SoapClientOptions | None = None) -> TransportHttpClient:
        """
        Create an HTTP client for the named transport.

        Raises:
            ConfigError: If no transport is registered under ``name``, or the
                options are invalid for it.
        """
        try:
            sender_factory = self._senders[name]
        except KeyError:
            raise ConfigError(f"Unsupported http client: {name!r}") from None
        _logger.debug("Creating %s http client", name)
        return TransportHttpClient(sender_factory(), options)
