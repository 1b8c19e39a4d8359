"""Order creation for a certificate."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from acmeissuer.core.types import Severity
from acmeissuer.errors import OperationCancelled, OrderCreationError
from acmeissuer.events import REASON_CREATE_ORDER_FAILED

if TYPE_CHECKING:
    from acmeissuer.core.context import OperationContext
    from acmeissuer.events import EventRecorder
    from acmeissuer.models.certificate import Certificate
    from acmeissuer.models.order import Order
    from acmeissuer.protocol.base import ProtocolClient

log = logging.getLogger(__name__)


def create_order(
    ctx: OperationContext,
    client: ProtocolClient,
    crt: Certificate,
    recorder: EventRecorder,
) -> Order:
    """Submit a new order for the identifiers of *crt*.

    On success ``crt.status.acme.order.url`` is set to the order URL;
    this is the only change made to the certificate.  On failure one
    ``Warning`` event is emitted for *crt* and the status is left alone.

    Raises
    ------
    OrderCreationError
        If the certificate names no domains or the server call failed.
    OperationCancelled
        If *ctx* was cancelled before or during the call.

    """
    identifiers = crt.domains()
    if not identifiers:
        msg = f"certificate {crt.ref} does not name any domains"
        raise OrderCreationError(msg, retryable=False)

    ctx.raise_if_cancelled()
    try:
        order = client.create_order(ctx, identifiers)
    except OperationCancelled:
        raise
    except Exception as exc:
        recorder.emit(
            crt,
            Severity.WARNING,
            REASON_CREATE_ORDER_FAILED,
            f"Error creating order: {exc}",
        )
        msg = f"error creating order for {crt.ref}: {exc}"
        raise OrderCreationError(msg) from exc

    log.info(
        "Created order %s for identifiers %s",
        order.url,
        ", ".join(order.identifiers or identifiers),
    )
    crt.status.acme.order.url = order.url
    return order
