"""Account private key resolution.

The ACME account key lives in a credential-store entry referenced by
the issuer's ``privateKeyRef``.  Only RSA keys are accepted, which is
what the JWS signer (RS256) expects.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import load_pem_private_key

from acmeissuer.errors import CredentialMalformed

if TYPE_CHECKING:
    from acmeissuer.config.settings import IssuerConfig
    from acmeissuer.credentials.base import CredentialStore

log = logging.getLogger(__name__)

DEFAULT_PRIVATE_KEY_SLOT = "tls.key"
"""The canonical "TLS private key" slot of a TLS secret."""


def account_private_key_ref(config: IssuerConfig) -> tuple[str, str]:
    """Return the secret name and key that store the account private key.

    An empty key in the configuration resolves to
    :data:`DEFAULT_PRIVATE_KEY_SLOT`.
    """
    ref = config.acme.private_key_ref if config.acme is not None else None
    name = ref.name if ref is not None else ""
    key = ref.key if ref is not None else ""
    if not key:
        key = DEFAULT_PRIVATE_KEY_SLOT
    return name, key


def resolve_account_key(
    store: CredentialStore,
    scope: str,
    name: str,
    key: str,
) -> rsa.RSAPrivateKey:
    """Read and decode the RSA account key.

    Raises
    ------
    CredentialNotFound
        If the secret or key does not exist (raised by the store).
    CredentialMalformed
        If the data is not a PEM-encoded RSA private key.

    """
    log.info("Loading ACME account key from secret %s/%s (key %s)", scope, name, key)
    data = store.get(scope, name, key)

    try:
        private_key = load_pem_private_key(data, password=None)
    except (ValueError, TypeError):
        # The cause may quote the input; keep it off the message.
        msg = f"data for {key!r} in secret {scope}/{name} is not a valid PEM private key"
        raise CredentialMalformed(msg, scope=scope, name=name, key=key) from None
    except UnsupportedAlgorithm:
        msg = f"data for {key!r} in secret {scope}/{name} uses an unsupported key algorithm"
        raise CredentialMalformed(msg, scope=scope, name=name, key=key) from None

    if not isinstance(private_key, rsa.RSAPrivateKey):
        msg = (
            f"data for {key!r} in secret {scope}/{name} is a "
            f"{type(private_key).__name__.lstrip('_')}, expected an RSA private key"
        )
        raise CredentialMalformed(msg, scope=scope, name=name, key=key)

    return private_key
