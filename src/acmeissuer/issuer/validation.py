"""Issuer configuration checks run before any network or secret access."""

from __future__ import annotations

from typing import TYPE_CHECKING

from acmeissuer.errors import ConfigError

if TYPE_CHECKING:
    from acmeissuer.config.settings import IssuerConfig


def validate_issuer_config(config: IssuerConfig, resource_namespace: str) -> None:
    """Check that *config* is complete enough to issue certificates.

    Parameters
    ----------
    config:
        The issuer configuration.
    resource_namespace:
        Scope in which the issuer's supplemental resources (the account
        key secret among them) live.

    Raises
    ------
    ConfigError
        Naming every missing field.

    """
    acme = config.acme
    if acme is None:
        msg = "acme config may not be empty"
        raise ConfigError(msg, fields=("acme",))

    missing = []
    if not acme.server:
        missing.append("acme.server")
    if not acme.private_key_ref.name:
        missing.append("acme.privateKeyRef.name")
    if not acme.email:
        missing.append("acme.email")
    if missing:
        msg = (
            "acme server, private key and email are required fields "
            f"(missing: {', '.join(missing)})"
        )
        raise ConfigError(msg, fields=missing)

    if not resource_namespace:
        msg = "resource namespace cannot be empty"
        raise ConfigError(msg, fields=("resourceNamespace",))
