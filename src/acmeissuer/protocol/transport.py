"""HTTP transport for the ACME server session.

``requests`` (via urllib3) performs the TCP connect and the TLS
handshake under a single *connect* timeout, so the dial and handshake
budgets are added together for that phase.  The overall request
timeout bounds the whole exchange.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from requests.adapters import HTTPAdapter
from urllib3.util import Timeout

if TYPE_CHECKING:
    import requests

    from acmeissuer.config.settings import TransportSettings

log = logging.getLogger(__name__)


class IdleTimeoutAdapter(HTTPAdapter):
    """HTTP adapter that drops pooled connections after an idle period.

    Parameters
    ----------
    idle_timeout:
        Seconds a pooled connection may sit unused before the pool is
        cleared on the next request.
    pool_maxsize:
        Maximum number of idle connections kept per host.

    """

    def __init__(self, idle_timeout: float, pool_maxsize: int, **kwargs: Any) -> None:  # noqa: ANN401
        self._idle_timeout = idle_timeout
        self._last_used: float | None = None
        super().__init__(pool_maxsize=pool_maxsize, **kwargs)

    @property
    def idle_timeout(self) -> float:
        return self._idle_timeout

    def send(self, request, **kwargs):  # type: ignore[override]
        now = time.monotonic()
        if self._last_used is not None and now - self._last_used > self._idle_timeout:
            log.debug(
                "ACME connections idle for %.0fs, clearing pool",
                now - self._last_used,
            )
            self.poolmanager.clear()
        try:
            return super().send(request, **kwargs)
        finally:
            self._last_used = time.monotonic()


def request_timeout(settings: TransportSettings) -> Timeout:
    """Return the urllib3 timeout applied to every ACME request."""
    return Timeout(
        connect=settings.dial_timeout_seconds + settings.tls_handshake_timeout_seconds,
        read=settings.request_timeout_seconds,
        total=settings.request_timeout_seconds,
    )


def mount_adapters(session: requests.Session, settings: TransportSettings) -> IdleTimeoutAdapter:
    """Install an :class:`IdleTimeoutAdapter` on *session* for http and https."""
    adapter = IdleTimeoutAdapter(
        idle_timeout=settings.idle_connection_timeout_seconds,
        pool_maxsize=settings.max_idle_connections,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return adapter
