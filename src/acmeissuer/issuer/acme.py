"""The ACME issuance orchestrator.

One :class:`AcmeIssuer` exists per configured issuer.  It is built with
every collaborator it needs and is driven synchronously, one
certificate at a time::

    issuer = AcmeIssuer(
        config,
        "cert-manager",
        credentials=store,
        recorder=recorder,
        solvers=registry,
    )
    ctx = OperationContext.with_timeout(600)
    order = issuer.obtain(ctx, certificate, on_ready=finalize)

The protocol client is built on first use and kept for the lifetime
of the instance.  Instances are not meant to be shared between threads;
concurrent certificates use separate issuers.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from acmeissuer.config.settings import PollSettings
from acmeissuer.core.context import OperationContext
from acmeissuer.credentials.keys import account_private_key_ref, resolve_account_key
from acmeissuer.errors import NoMatchingChallenge
from acmeissuer.issuer import challenges, orders
from acmeissuer.issuer.challenges import ChallengeTask
from acmeissuer.issuer.validation import validate_issuer_config
from acmeissuer.logging import issuance_scope
from acmeissuer.protocol.factory import build_acme_client

if TYPE_CHECKING:
    from cryptography.hazmat.primitives.asymmetric import rsa

    from acmeissuer.config.settings import IssuerConfig
    from acmeissuer.credentials.base import CredentialStore
    from acmeissuer.events import EventRecorder
    from acmeissuer.models.certificate import Certificate
    from acmeissuer.models.order import Challenge, Order
    from acmeissuer.protocol.base import ProtocolClient
    from acmeissuer.solvers.base import Solver
    from acmeissuer.solvers.registry import SolverRegistry

log = logging.getLogger(__name__)

ClientFactory = Callable[["rsa.RSAPrivateKey", "IssuerConfig"], "ProtocolClient"]
ReadyCallback = Callable[["ProtocolClient", "Order", Sequence["Challenge"]], None]


class AcmeIssuer:
    """Issue certificates from one ACME account.

    Parameters
    ----------
    config:
        The issuer configuration.  Validated here, before anything else
        happens.
    resource_namespace:
        Scope of the account key secret and other supporting resources.
    credentials:
        Where the account key is read from.
    recorder:
        Receives events about certificates.
    solvers:
        The HTTP-01 and DNS-01 solvers.
    client_factory:
        Builds the protocol client from the account key and config.
        Defaults to :func:`acmeissuer.protocol.factory.build_acme_client`.
    poll:
        Check polling interval, timeout and cleanup grace period.

    Raises
    ------
    ConfigError
        If *config* or *resource_namespace* is incomplete.

    """

    def __init__(
        self,
        config: IssuerConfig,
        resource_namespace: str,
        *,
        credentials: CredentialStore,
        recorder: EventRecorder,
        solvers: SolverRegistry,
        client_factory: ClientFactory | None = None,
        poll: PollSettings | None = None,
    ) -> None:
        validate_issuer_config(config, resource_namespace)
        self._config = config
        self._resource_namespace = resource_namespace
        self._credentials = credentials
        self._recorder = recorder
        self._solvers = solvers
        self._client_factory: ClientFactory = client_factory or build_acme_client
        self._poll = poll or PollSettings()
        self._client: ProtocolClient | None = None

    @property
    def name(self) -> str:
        return self._config.name

    @property
    def config(self) -> IssuerConfig:
        return self._config

    @property
    def resource_namespace(self) -> str:
        return self._resource_namespace

    # -- collaborators ------------------------------------------------------

    def client(self, ctx: OperationContext | None = None) -> ProtocolClient:
        """Return the protocol client, building it on first use.

        Building reads the account key from the credential store but
        does not touch the network.

        Raises
        ------
        CredentialNotFound, CredentialMalformed
            If the account key cannot be loaded.  Nothing is cached, so
            a later call tries again.

        """
        if self._client is not None:
            return self._client
        if ctx is not None:
            ctx.raise_if_cancelled()

        name, key = account_private_key_ref(self._config)
        account_key = resolve_account_key(self._credentials, self._resource_namespace, name, key)
        self._client = self._client_factory(account_key, self._config)
        log.debug("Built ACME client for issuer %s", self.name)
        return self._client

    def solver_for(self, challenge_type: str) -> Solver:
        return self._solvers.solver_for(challenge_type)

    # -- operations ---------------------------------------------------------

    def create_order(self, ctx: OperationContext, crt: Certificate) -> Order:
        """Create an order for *crt* and record its URL on the status."""
        return orders.create_order(ctx, self.client(ctx), crt, self._recorder)

    def select_challenges(self, crt: Certificate, order: Order) -> list[ChallengeTask]:
        """Pick one challenge and its solver for each pending authorization.

        Raises
        ------
        UnsupportedChallengeType
            If the certificate asks for a type with no solver.
        NoMatchingChallenge
            If an authorization does not offer the requested type.

        """
        pending = order.pending_authorizations
        skipped = len(order.authorizations) - len(pending)
        if skipped:
            log.debug("Skipping %d authorization(s) that are no longer pending", skipped)
        tasks = []
        for authz in pending:
            domain = f"*.{authz.identifier}" if authz.wildcard else authz.identifier
            challenge_type = crt.challenge_type_for(domain)
            solver = self.solver_for(challenge_type)
            challenge = authz.challenge_of_type(challenge_type)
            if challenge is None:
                raise NoMatchingChallenge(domain, challenge_type, authz.offered_types)
            tasks.append(ChallengeTask(challenge=challenge, solver=solver))
        return tasks

    def solve(
        self,
        ctx: OperationContext,
        crt: Certificate,
        order: Order,
        on_ready: ReadyCallback | None = None,
    ) -> list[ChallengeTask]:
        """Present, wait for and clean up every challenge of *order*.

        *on_ready* is called once all challenges report ready and before
        they are cleaned up; that is where the caller finalizes the
        order.  Cleanup runs for every presented challenge on every exit
        path, under a short grace context of its own so a cancelled
        *ctx* does not prevent it.
        """
        tasks = self.select_challenges(crt, order)
        if not tasks:
            log.info("Order %s has no pending authorizations", order.url)

        try:
            challenges.present_all(ctx, crt, tasks)
            challenges.poll_until_ready(ctx, tasks, self._poll)
            if on_ready is not None:
                on_ready(self.client(ctx), order, [t.challenge for t in tasks])
        except BaseException:
            challenges.cleanup_all(self._grace_context(), crt, tasks)
            raise

        error = challenges.cleanup_all(self._grace_context(), crt, tasks)
        if error is not None:
            raise error
        return tasks

    def obtain(
        self,
        ctx: OperationContext,
        crt: Certificate,
        on_ready: ReadyCallback | None = None,
    ) -> Order:
        """Run one issuance pass for *crt*: create an order and solve it."""
        with issuance_scope(certificate=crt.ref, issuer=self.name):
            order = self.create_order(ctx, crt)
            self.solve(ctx, crt, order, on_ready)
            return order

    def _grace_context(self) -> OperationContext:
        return OperationContext.with_timeout(self._poll.cleanup_grace_seconds)
