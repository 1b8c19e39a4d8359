"""Domain models handled by the issuer.

:class:`Certificate` is owned by the calling reconciler; the
ACME-side entities (:class:`Order`, :class:`Authorization`,
:class:`Challenge`) are immutable snapshots of server state.
"""

from acmeissuer.models.certificate import (
    AcmeCertificateConfig,
    AcmeCertificateStatus,
    Certificate,
    CertificateStatus,
    Dns01ChallengeConfig,
    DomainSolverConfig,
    Http01ChallengeConfig,
    OrderRef,
)
from acmeissuer.models.order import Authorization, Challenge, Order

__all__ = [
    "AcmeCertificateConfig",
    "AcmeCertificateStatus",
    "Authorization",
    "Certificate",
    "CertificateStatus",
    "Challenge",
    "Dns01ChallengeConfig",
    "DomainSolverConfig",
    "Http01ChallengeConfig",
    "Order",
    "OrderRef",
]
