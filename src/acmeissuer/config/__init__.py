"""Configuration subsystem for acmeissuer.

Public API::

    from acmeissuer.config import AcmeissuerConfig

    config = AcmeissuerConfig(config_file="config.yaml")
    server = config.settings.issuer.acme.server   # typed access
    custom = config.get("solvers.http01.webroot")  # dynamic dot-path
"""

from acmeissuer.config.acmeissuer_config import (
    AcmeissuerConfig,
    ConfigValidationError,
)
from acmeissuer.config.settings import (
    AcmeissuerSettings,
    AcmeIssuerSettings,
    CredentialSettings,
    Dns01SolverSettings,
    Http01SolverSettings,
    IssuerConfig,
    LoggingSettings,
    PollSettings,
    SecretKeySelector,
    SolverSettings,
    TransportSettings,
    build_issuer_config,
)

__all__ = [
    "AcmeIssuerSettings",
    # Core
    "AcmeissuerConfig",
    # Root
    "AcmeissuerSettings",
    "ConfigValidationError",
    "CredentialSettings",
    "Dns01SolverSettings",
    "Http01SolverSettings",
    # Sections
    "IssuerConfig",
    "LoggingSettings",
    "PollSettings",
    "SecretKeySelector",
    "SolverSettings",
    "TransportSettings",
    "build_issuer_config",
]
