"""Composition root: build an :class:`AcmeIssuer` from settings.

Called once at process start by the CLI, or by embedding code::

    settings = AcmeissuerConfig.load("config.yaml")
    issuer = build_issuer(settings)
"""

from __future__ import annotations

import dataclasses
import functools
import logging
from typing import TYPE_CHECKING

from acmeissuer.core.types import IssuerKind
from acmeissuer.credentials.files import FileCredentialStore
from acmeissuer.errors import ConfigError
from acmeissuer.events import LoggingEventRecorder
from acmeissuer.issuer.acme import AcmeIssuer
from acmeissuer.protocol.factory import build_acme_client
from acmeissuer.solvers.dns01 import Dns01Solver
from acmeissuer.solvers.http01 import Http01Solver
from acmeissuer.solvers.registry import SolverRegistry

if TYPE_CHECKING:
    from acmeissuer.config.settings import AcmeissuerSettings
    from acmeissuer.credentials.base import CredentialStore
    from acmeissuer.events import EventRecorder
    from acmeissuer.issuer.acme import ClientFactory

log = logging.getLogger(__name__)


def resource_namespace_for(settings: AcmeissuerSettings) -> str:
    """Return the scope holding the issuer's supporting resources.

    Namespaced issuers keep them in their own namespace; cluster-wide
    issuers (and issuers without a namespace) use the cluster resource
    namespace.
    """
    issuer = settings.issuer
    if issuer.kind == IssuerKind.CLUSTER_ISSUER or not issuer.namespace:
        return settings.cluster_resource_namespace
    return issuer.namespace


def ambient_credentials_for(settings: AcmeissuerSettings) -> bool:
    """Return whether solvers may use ambient credentials for this issuer kind.

    Raises
    ------
    ConfigError
        For an issuer kind other than ``Issuer`` or ``ClusterIssuer``.

    """
    kind = settings.issuer.kind
    if kind == IssuerKind.ISSUER:
        return settings.issuer_ambient_credentials
    if kind == IssuerKind.CLUSTER_ISSUER:
        return settings.cluster_issuer_ambient_credentials
    msg = f"unknown issuer kind {kind!r}"
    raise ConfigError(msg, fields=("issuer.kind",))


def build_solvers(settings: AcmeissuerSettings, *, ambient_credentials: bool) -> SolverRegistry:
    try:
        dns01 = Dns01Solver(
            settings.solvers.dns01,
            settings.dns01_nameservers,
            ambient_credentials=ambient_credentials,
        )
    except ValueError as exc:
        raise ConfigError(str(exc), fields=("dns01Nameservers",)) from exc
    return SolverRegistry(http01=Http01Solver(settings.solvers.http01), dns01=dns01)


def build_issuer(
    settings: AcmeissuerSettings,
    *,
    credentials: CredentialStore | None = None,
    recorder: EventRecorder | None = None,
    client_factory: ClientFactory | None = None,
) -> AcmeIssuer:
    """Wire an :class:`AcmeIssuer` and its collaborators from *settings*.

    Any collaborator passed explicitly replaces the default built from
    settings.

    Raises
    ------
    ConfigError
        If the issuer configuration is incomplete or its kind unknown.

    """
    ambient = ambient_credentials_for(settings)
    config = dataclasses.replace(settings.issuer, ambient_credentials=ambient)
    resource_namespace = resource_namespace_for(settings)

    if credentials is None:
        credentials = FileCredentialStore(settings.credentials.directory)
    if recorder is None:
        recorder = LoggingEventRecorder()
    if client_factory is None:
        client_factory = functools.partial(build_acme_client, transport=settings.transport)

    log.info(
        "Building %s %s (resource namespace %s, ambient credentials %s)",
        config.kind,
        config.name,
        resource_namespace or "-",
        "allowed" if ambient else "denied",
    )
    return AcmeIssuer(
        config,
        resource_namespace,
        credentials=credentials,
        recorder=recorder,
        solvers=build_solvers(settings, ambient_credentials=ambient),
        client_factory=client_factory,
        poll=settings.challenges,
    )
