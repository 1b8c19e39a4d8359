"""Typed, frozen dataclasses for every configuration section.

This module is the **single source of truth** for default values.
Keys in the YAML file are camelCase, matching the resource schema of
the certificate platform; the attributes below are snake_case.

Access pattern::

    from acmeissuer.config import AcmeissuerConfig

    settings = AcmeissuerConfig.load("config.yaml")
    print(settings.issuer.acme.server)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from acmeissuer.core.types import IssuerKind

# ---------------------------------------------------------------------------
# Issuer
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SecretKeySelector:
    """Reference to one key inside a named credential-store entry.

    An empty ``key`` means "use the default slot" (see
    :func:`acmeissuer.credentials.keys.account_private_key_ref`).
    """

    name: str
    key: str = ""


@dataclass(frozen=True)
class AcmeIssuerSettings:
    """The ``acme`` block of an issuer."""

    server: str
    email: str
    private_key_ref: SecretKeySelector
    skip_tls_verify: bool = False


@dataclass(frozen=True)
class IssuerConfig:
    """Everything an :class:`~acmeissuer.issuer.acme.AcmeIssuer` is built from.

    ``ambient_credentials`` and ``dns01_nameservers`` come from the
    process configuration rather than the issuer resource itself.
    """

    name: str
    namespace: str = ""
    kind: str = IssuerKind.ISSUER
    acme: AcmeIssuerSettings | None = None
    ambient_credentials: bool = False
    dns01_nameservers: tuple[str, ...] = ()


def _build_secret_key_selector(data: dict | None) -> SecretKeySelector:
    d = data or {}
    return SecretKeySelector(
        name=d.get("name", "") or "",
        key=d.get("key", "") or "",
    )


def _build_acme_issuer(data: dict | None) -> AcmeIssuerSettings | None:
    if data is None:
        return None
    return AcmeIssuerSettings(
        server=data.get("server", "") or "",
        email=data.get("email", "") or "",
        private_key_ref=_build_secret_key_selector(data.get("privateKeyRef")),
        skip_tls_verify=bool(data.get("skipTLSVerify", False)),
    )


def build_issuer_config(
    data: dict | None,
    *,
    ambient_credentials: bool = False,
    dns01_nameservers: tuple[str, ...] = (),
) -> IssuerConfig:
    """Build an :class:`IssuerConfig` from an ``issuer`` mapping."""
    d = data or {}
    return IssuerConfig(
        name=d.get("name", "") or "",
        namespace=d.get("namespace", "") or "",
        kind=d.get("kind", IssuerKind.ISSUER),
        acme=_build_acme_issuer(d.get("acme")),
        ambient_credentials=ambient_credentials,
        dns01_nameservers=tuple(dns01_nameservers),
    )


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TransportSettings:
    """Connection parameters for the ACME server session."""

    dial_timeout_seconds: float = 5.0
    tls_handshake_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 30.0
    max_idle_connections: int = 100
    idle_connection_timeout_seconds: float = 90.0


def _build_transport(data: dict | None) -> TransportSettings:
    d = data or {}
    return TransportSettings(
        dial_timeout_seconds=d.get("dialTimeoutSeconds", 5.0),
        tls_handshake_timeout_seconds=d.get("tlsHandshakeTimeoutSeconds", 10.0),
        request_timeout_seconds=d.get("requestTimeoutSeconds", 30.0),
        max_idle_connections=d.get("maxIdleConnections", 100),
        idle_connection_timeout_seconds=d.get("idleConnectionTimeoutSeconds", 90.0),
    )


# ---------------------------------------------------------------------------
# Challenge polling
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PollSettings:
    """How the orchestrator polls :meth:`Solver.check`."""

    interval_seconds: float = 5.0
    timeout_seconds: float = 300.0
    cleanup_grace_seconds: float = 10.0


def _build_poll(data: dict | None) -> PollSettings:
    d = data or {}
    return PollSettings(
        interval_seconds=d.get("pollIntervalSeconds", 5.0),
        timeout_seconds=d.get("timeoutSeconds", 300.0),
        cleanup_grace_seconds=d.get("cleanupGraceSeconds", 10.0),
    )


# ---------------------------------------------------------------------------
# Solvers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Http01SolverSettings:
    """HTTP-01 responder configuration.

    ``responder`` is ``"webroot"`` (write the token file below
    ``webroot``) or ``"callback"`` (run ``deploy_script`` /
    ``cleanup_script``).
    """

    responder: str = "webroot"
    webroot: str | None = None
    deploy_script: str | None = None
    cleanup_script: str | None = None
    script_timeout_seconds: int = 60
    port: int = 80
    check_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class Dns01SolverSettings:
    """DNS-01 record provisioning configuration."""

    create_script: str | None = None
    delete_script: str | None = None
    script_timeout_seconds: int = 60
    query_timeout_seconds: float = 10.0


@dataclass(frozen=True)
class SolverSettings:
    http01: Http01SolverSettings = field(default_factory=Http01SolverSettings)
    dns01: Dns01SolverSettings = field(default_factory=Dns01SolverSettings)


def _build_http01(data: dict | None) -> Http01SolverSettings:
    d = data or {}
    return Http01SolverSettings(
        responder=d.get("responder", "webroot"),
        webroot=d.get("webroot"),
        deploy_script=d.get("deployScript"),
        cleanup_script=d.get("cleanupScript"),
        script_timeout_seconds=d.get("scriptTimeoutSeconds", 60),
        port=d.get("port", 80),
        check_timeout_seconds=d.get("checkTimeoutSeconds", 10.0),
    )


def _build_dns01(data: dict | None) -> Dns01SolverSettings:
    d = data or {}
    return Dns01SolverSettings(
        create_script=d.get("createScript"),
        delete_script=d.get("deleteScript"),
        script_timeout_seconds=d.get("scriptTimeoutSeconds", 60),
        query_timeout_seconds=d.get("queryTimeoutSeconds", 10.0),
    )


def _build_solvers(data: dict | None) -> SolverSettings:
    d = data or {}
    return SolverSettings(
        http01=_build_http01(d.get("http01")),
        dns01=_build_dns01(d.get("dns01")),
    )


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CredentialSettings:
    """Where mounted secrets live on disk."""

    directory: str = "/var/run/secrets/acmeissuer"


def _build_credentials(data: dict | None) -> CredentialSettings:
    d = data or {}
    return CredentialSettings(
        directory=d.get("directory", "/var/run/secrets/acmeissuer"),
    )


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LoggingSettings:
    level: str = "INFO"
    format: str = "text"


def _build_logging(data: dict | None) -> LoggingSettings:
    d = data or {}
    return LoggingSettings(
        level=d.get("level", "INFO"),
        format=d.get("format", "text"),
    )


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AcmeissuerSettings:
    """Root of the typed settings tree."""

    issuer: IssuerConfig
    cluster_resource_namespace: str
    issuer_ambient_credentials: bool
    cluster_issuer_ambient_credentials: bool
    dns01_nameservers: tuple[str, ...]
    transport: TransportSettings
    challenges: PollSettings
    solvers: SolverSettings
    credentials: CredentialSettings
    logging: LoggingSettings


def build_settings(data: dict[str, Any]) -> AcmeissuerSettings:
    """Materialise the full settings tree from a loaded config mapping."""
    nameservers = tuple(data.get("dns01Nameservers") or ())
    issuer_data = data.get("issuer") or {}
    kind = issuer_data.get("kind", IssuerKind.ISSUER)
    issuer_ambient = bool(data.get("issuerAmbientCredentials", False))
    cluster_ambient = bool(data.get("clusterIssuerAmbientCredentials", False))
    ambient = cluster_ambient if kind == IssuerKind.CLUSTER_ISSUER else issuer_ambient

    return AcmeissuerSettings(
        issuer=build_issuer_config(
            issuer_data,
            ambient_credentials=ambient,
            dns01_nameservers=nameservers,
        ),
        cluster_resource_namespace=data.get("clusterResourceNamespace", "") or "",
        issuer_ambient_credentials=issuer_ambient,
        cluster_issuer_ambient_credentials=cluster_ambient,
        dns01_nameservers=nameservers,
        transport=_build_transport(data.get("transport")),
        challenges=_build_poll(data.get("challenges")),
        solvers=_build_solvers(data.get("solvers")),
        credentials=_build_credentials(data.get("credentials")),
        logging=_build_logging(data.get("logging")),
    )
