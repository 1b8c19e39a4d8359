"""Diagnostic wrapper around a :class:`ProtocolClient`.

Logs every outgoing ACME operation with its duration and outcome.
Results and exceptions pass through untouched.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from typing import TYPE_CHECKING

from acmeissuer.protocol.base import ProtocolClient

if TYPE_CHECKING:
    from acmeissuer.core.context import OperationContext
    from acmeissuer.models.order import Order

log = logging.getLogger(__name__)


class LoggingClient(ProtocolClient):
    """Wrap *client* and log each call at INFO (failures at WARNING)."""

    def __init__(self, client: ProtocolClient) -> None:
        self._client = client

    @property
    def wrapped(self) -> ProtocolClient:
        return self._client

    def create_order(self, ctx: OperationContext, identifiers: Sequence[str]) -> Order:
        log.info("Calling CreateOrder for %s", ", ".join(identifiers))
        start = time.monotonic()
        try:
            order = self._client.create_order(ctx, identifiers)
        except Exception as exc:
            log.warning(
                "CreateOrder failed after %.2fs: %s: %s",
                time.monotonic() - start,
                type(exc).__name__,
                exc,
            )
            raise
        log.info(
            "CreateOrder returned %s (%s) after %.2fs",
            order.url,
            order.status,
            time.monotonic() - start,
        )
        return order
