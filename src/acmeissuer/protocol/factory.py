"""Protocol client factory.

Builds the HTTP transport and the ACME client for one account key::

    client = build_acme_client(account_key, issuer_config)
    order = client.create_order(ctx, ["example.com"])

No network I/O happens here; the directory and account are fetched on
first use.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import josepy as jose
from acme.client import ClientNetwork

from acmeissuer import __version__
from acmeissuer.config.settings import TransportSettings
from acmeissuer.protocol.client import AcmeProtocolClient
from acmeissuer.protocol.middleware import LoggingClient
from acmeissuer.protocol.transport import mount_adapters, request_timeout

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric import rsa

    from acmeissuer.config.settings import IssuerConfig
    from acmeissuer.protocol.base import ProtocolClient

log = logging.getLogger(__name__)

USER_AGENT = f"acmeissuer/{__version__}"


def build_acme_client(
    account_key: rsa.RSAPrivateKey,
    config: IssuerConfig,
    transport: TransportSettings | None = None,
) -> ProtocolClient:
    """Return a logging-wrapped ACME client bound to *account_key*.

    ``config.acme.skip_tls_verify`` disables certificate verification
    for this client's session only.
    """
    if config.acme is None:
        msg = "acme config may not be empty"
        raise ValueError(msg)
    transport = transport or TransportSettings()

    verify_ssl = not config.acme.skip_tls_verify
    if not verify_ssl:
        log.warning(
            "TLS verification disabled for ACME server %s (issuer %s)",
            config.acme.server,
            config.name,
        )

    net = ClientNetwork(
        jose.JWKRSA(key=account_key),
        alg=jose.RS256,
        verify_ssl=verify_ssl,
        user_agent=USER_AGENT,
        timeout=request_timeout(transport),
    )
    mount_adapters(net.session, transport)

    client = AcmeProtocolClient(net, config.acme.server, config.acme.email)
    return LoggingClient(client)
