"""Order, Authorization and Challenge snapshots."""

from __future__ import annotations

from dataclasses import dataclass

from acmeissuer.core.types import AuthorizationStatus, OrderStatus


@dataclass(frozen=True)
class Challenge:
    """One proof-of-control mechanism offered for one identifier.

    ``key_authorization`` is ``token + "." + thumbprint(account key)``
    (RFC 8555 §8.1); solvers derive the published value from it.
    """

    type: str
    url: str
    token: str
    key_authorization: str
    domain: str
    wildcard: bool = False
    status: str = "pending"


@dataclass(frozen=True)
class Authorization:
    url: str
    identifier: str
    status: str = AuthorizationStatus.PENDING
    wildcard: bool = False
    challenges: tuple[Challenge, ...] = ()

    @property
    def offered_types(self) -> tuple[str, ...]:
        return tuple(ch.type for ch in self.challenges)

    def challenge_of_type(self, challenge_type: str) -> Challenge | None:
        for ch in self.challenges:
            if ch.type == challenge_type:
                return ch
        return None


@dataclass(frozen=True)
class Order:
    url: str
    identifiers: tuple[str, ...]
    status: str = OrderStatus.PENDING
    finalize_url: str = ""
    authorizations: tuple[Authorization, ...] = ()

    @property
    def pending_authorizations(self) -> tuple[Authorization, ...]:
        """Authorizations that still need a challenge solved."""
        return tuple(a for a in self.authorizations if a.status == AuthorizationStatus.PENDING)
