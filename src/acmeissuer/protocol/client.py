"""ACME v2 protocol client built on the ``acme`` library.

Directory discovery and account lookup are deferred to the first call
so that constructing a client never touches the network.  Server
objects are converted to the issuer's own
:mod:`acmeissuer.models.order` snapshots before being returned.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from acme import challenges, errors, messages
from acme.client import ClientV2

from acmeissuer.core.types import AuthorizationStatus, OrderStatus
from acmeissuer.models.order import Authorization, Challenge, Order
from acmeissuer.protocol.base import ProtocolClient

if TYPE_CHECKING:
    import josepy as jose
    from acme.client import ClientNetwork

    from acmeissuer.core.context import OperationContext

log = logging.getLogger(__name__)


class AcmeProtocolClient(ProtocolClient):
    """ACME client bound to one account key and directory URL.

    The context is checked between requests.  A request already in
    flight is not interrupted; it is bounded by the transport's request
    timeout (30s by default).

    Parameters
    ----------
    net:
        A configured :class:`acme.client.ClientNetwork` holding the
        account key and HTTP session.
    directory_url:
        The ACME directory of the certificate authority.
    email:
        Account contact, used when the account has to be registered.

    """

    def __init__(self, net: ClientNetwork, directory_url: str, email: str) -> None:
        self._net = net
        self._directory_url = directory_url
        self._email = email
        self._client: ClientV2 | None = None

    @property
    def directory_url(self) -> str:
        return self._directory_url

    @property
    def net(self) -> ClientNetwork:
        return self._net

    @property
    def account_key(self) -> jose.JWK:
        return self._net.key

    # -- lazy setup ---------------------------------------------------------

    def _acme(self, ctx: OperationContext) -> ClientV2:
        """Return the ``ClientV2``, discovering the directory and account once."""
        if self._client is not None:
            return self._client

        ctx.raise_if_cancelled()
        directory = ClientV2.get_directory(self._directory_url, self._net)
        client = ClientV2(directory, self._net)

        ctx.raise_if_cancelled()
        registration = messages.NewRegistration.from_data(
            email=self._email,
            terms_of_service_agreed=True,
        )
        try:
            regr = client.new_account(registration)
            log.info("Registered ACME account %s with %s", regr.uri, self._directory_url)
        except errors.ConflictError as exc:
            # The key already belongs to an account; reuse it.
            self._net.account = messages.RegistrationResource(
                uri=exc.location,
                body=messages.Registration(),
            )
            log.info("Using existing ACME account %s", exc.location)

        self._client = client
        return client

    def _post_as_get(self, client: ClientV2, url: str) -> Any:  # noqa: ANN401
        return self._net.post(url, None, new_nonce_url=client.directory["newNonce"])

    # -- operations ---------------------------------------------------------

    def create_order(self, ctx: OperationContext, identifiers: Sequence[str]) -> Order:
        client = self._acme(ctx)

        ctx.raise_if_cancelled()
        new_order = messages.NewOrder(
            identifiers=tuple(
                messages.Identifier(typ=messages.IDENTIFIER_FQDN, value=value)
                for value in identifiers
            ),
        )
        response = self._net.post(
            client.directory["newOrder"],
            new_order,
            new_nonce_url=client.directory["newNonce"],
        )
        body = messages.Order.from_json(response.json())
        order_url = response.headers.get("Location", "")

        authorizations = []
        for authz_url in body.authorizations or ():
            ctx.raise_if_cancelled()
            authz_response = self._post_as_get(client, authz_url)
            authz = messages.Authorization.from_json(authz_response.json())
            authorizations.append(self._convert_authorization(authz_url, authz))

        return Order(
            url=order_url,
            identifiers=tuple(ident.value for ident in body.identifiers or ()),
            status=_status_name(body.status, OrderStatus.PENDING),
            finalize_url=body.finalize or "",
            authorizations=tuple(authorizations),
        )

    # -- conversion ---------------------------------------------------------

    def _convert_authorization(self, url: str, authz: messages.Authorization) -> Authorization:
        domain = authz.identifier.value if authz.identifier is not None else ""
        wildcard = bool(authz.wildcard)
        return Authorization(
            url=url,
            identifier=domain,
            status=_status_name(authz.status, AuthorizationStatus.PENDING),
            wildcard=wildcard,
            challenges=tuple(
                self._convert_challenge(challb, domain, wildcard) for challb in authz.challenges or ()
            ),
        )

    def _convert_challenge(
        self,
        challb: messages.ChallengeBody,
        domain: str,
        wildcard: bool,  # noqa: FBT001
    ) -> Challenge:
        chall = challb.chall
        if isinstance(chall, challenges.KeyAuthorizationChallenge):
            typ = chall.typ
            token = chall.encode("token")
            key_authz = chall.key_authorization(self._net.key)
        else:
            typ = chall.to_partial_json().get("type", "")
            token = chall.to_partial_json().get("token", "")
            key_authz = ""
        return Challenge(
            type=typ,
            url=challb.uri or "",
            token=token,
            key_authorization=key_authz,
            domain=domain,
            wildcard=wildcard,
            status=_status_name(challb.status, "pending"),
        )


def _status_name(status: messages.Status | None, default: str) -> str:
    if status is None:
        return default
    return status.name
