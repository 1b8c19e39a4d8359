"""Protocol client interface consumed by the issuer."""

from __future__ import annotations

import abc
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from acmeissuer.core.context import OperationContext
    from acmeissuer.models.order import Order


class ProtocolClient(abc.ABC):
    """An ACME client bound to one account key and one directory."""

    @abc.abstractmethod
    def create_order(self, ctx: OperationContext, identifiers: Sequence[str]) -> Order:
        """Submit a new order for *identifiers* and return it.

        The returned order carries every authorization with its
        challenges already fetched.
        """
