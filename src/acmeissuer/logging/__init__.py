"""Logging subsystem for acmeissuer.

Public API::

    from acmeissuer.logging import configure_logging, issuance_scope

    configure_logging(settings.logging)

    with issuance_scope(certificate="default/web", issuer="letsencrypt"):
        ...
"""

from acmeissuer.logging.context import issuance_scope
from acmeissuer.logging.setup import configure_logging

__all__ = ["configure_logging", "issuance_scope"]
