"""ACME protocol client and its construction."""

from acmeissuer.protocol.base import ProtocolClient
from acmeissuer.protocol.factory import build_acme_client

__all__ = ["ProtocolClient", "build_acme_client"]
