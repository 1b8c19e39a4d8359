"""ACME issuance orchestration."""

from acmeissuer.issuer.acme import AcmeIssuer
from acmeissuer.issuer.factory import build_issuer
from acmeissuer.issuer.validation import validate_issuer_config

__all__ = ["AcmeIssuer", "build_issuer", "validate_issuer_config"]
