"""Certificate resource as seen by the issuer.

The reconciler owns instances of :class:`Certificate`.  The issuer
reads the identifiers and per-domain solver configuration, and writes
exactly one field: ``status.acme.order.url``.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from acmeissuer.core.types import ChallengeType


@dataclass(frozen=True)
class Http01ChallengeConfig:
    """Marks a domain for HTTP-01; the responder is configured process-wide."""


@dataclass(frozen=True)
class Dns01ChallengeConfig:
    """Per-domain DNS-01 parameters.

    ``provider`` is handed to the record scripts so one script pair can
    serve several DNS zones or accounts.
    """

    provider: str = ""


@dataclass(frozen=True)
class DomainSolverConfig:
    """Which challenge type to solve for a set of domains."""

    domains: tuple[str, ...]
    http01: Http01ChallengeConfig | None = None
    dns01: Dns01ChallengeConfig | None = None

    @property
    def challenge_type(self) -> str:
        if self.dns01 is not None:
            return ChallengeType.DNS_01
        return ChallengeType.HTTP_01


@dataclass(frozen=True)
class AcmeCertificateConfig:
    config: tuple[DomainSolverConfig, ...] = ()


@dataclass
class OrderRef:
    url: str = ""


@dataclass
class AcmeCertificateStatus:
    order: OrderRef = field(default_factory=OrderRef)


@dataclass
class CertificateStatus:
    acme: AcmeCertificateStatus = field(default_factory=AcmeCertificateStatus)


@dataclass
class Certificate:
    """A managed certificate resource.

    Parameters
    ----------
    name, namespace:
        Identify the resource; used in events and log records.
    common_name, dns_names:
        The identifiers to secure.
    acme:
        Per-domain solver selection.  Domains without an entry use
        ``default_challenge_type``.

    """

    name: str
    namespace: str = ""
    common_name: str = ""
    dns_names: tuple[str, ...] = ()
    acme: AcmeCertificateConfig | None = None
    default_challenge_type: str = ChallengeType.HTTP_01
    status: CertificateStatus = field(default_factory=CertificateStatus)

    @property
    def ref(self) -> str:
        """``namespace/name`` reference used in events and logs."""
        return f"{self.namespace}/{self.name}" if self.namespace else self.name

    def domains(self) -> list[str]:
        """Return the identifiers to order, deduplicated in first-seen order."""
        seen: dict[str, None] = {}
        for name in (self.common_name, *self.dns_names):
            if name and name not in seen:
                seen[name] = None
        return list(seen)

    def solver_config_for(self, domain: str) -> DomainSolverConfig | None:
        if self.acme is None:
            return None
        for cfg in self.acme.config:
            if domain in cfg.domains:
                return cfg
        return None

    def challenge_type_for(self, domain: str) -> str:
        cfg = self.solver_config_for(domain)
        if cfg is None:
            return self.default_challenge_type
        return cfg.challenge_type
