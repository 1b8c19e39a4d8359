"""Error taxonomy for the ACME issuer.

Every error carries a human-readable ``detail`` and a ``retryable``
flag.  ``fatal`` errors mean the operator has to fix configuration or
credentials; the others clear up on a later reconciliation pass.

============================  =========  =====
Error                         retryable  fatal
============================  =========  =====
ConfigError                   no         yes
CredentialNotFound            yes        yes
CredentialMalformed           yes        yes
OrderCreationError            yes        no
UnsupportedChallengeType      no         no
SolverError                   yes        no
OperationCancelled            no         no
============================  =========  =====
"""

from __future__ import annotations

from collections.abc import Iterable


class IssuerError(Exception):
    """Base class for all errors raised by the issuer.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    retryable:
        Whether a later reconciliation pass may succeed unchanged.

    """

    fatal = False

    def __init__(self, detail: str, *, retryable: bool = False) -> None:
        self.detail = detail
        self.retryable = retryable
        super().__init__(detail)


class ConfigError(IssuerError):
    """Issuer configuration is incomplete or invalid."""

    fatal = True

    def __init__(self, detail: str, *, fields: Iterable[str] = ()) -> None:
        self.fields = tuple(fields)
        super().__init__(detail, retryable=False)


class CredentialError(IssuerError):
    """Base class for credential store failures."""

    fatal = True

    def __init__(self, detail: str, *, scope: str, name: str, key: str) -> None:
        self.scope = scope
        self.name = name
        self.key = key
        super().__init__(detail, retryable=True)


class CredentialNotFound(CredentialError):
    """The referenced secret, or the key inside it, does not exist."""


class CredentialMalformed(CredentialError):
    """The referenced secret exists but does not hold a usable key."""


class OrderCreationError(IssuerError):
    """The ACME server rejected or failed to create an order."""

    def __init__(self, detail: str, *, retryable: bool = True) -> None:
        super().__init__(detail, retryable=retryable)


class UnsupportedChallengeType(IssuerError):
    """No solver exists for the requested challenge type."""

    def __init__(self, challenge_type: str) -> None:
        self.challenge_type = challenge_type
        super().__init__(
            f"no solver for {challenge_type!r} implemented",
            retryable=False,
        )


class NoMatchingChallenge(IssuerError):
    """An authorization does not offer the configured challenge type."""

    def __init__(self, domain: str, challenge_type: str, offered: Iterable[str]) -> None:
        self.domain = domain
        self.challenge_type = challenge_type
        self.offered = tuple(offered)
        super().__init__(
            f"authorization for {domain!r} does not offer {challenge_type!r} "
            f"(offered: {', '.join(self.offered) or 'none'})",
            retryable=False,
        )


class SolverError(IssuerError):
    """A solver's Present, Check or CleanUp step failed.

    Parameters
    ----------
    detail:
        Human-readable description of the failure.
    phase:
        ``"present"``, ``"check"`` or ``"cleanup"``.
    retryable:
        Solver failures are transient unless the solver says otherwise.

    """

    def __init__(self, detail: str, *, phase: str = "", retryable: bool = True) -> None:
        self.phase = phase
        super().__init__(detail, retryable=retryable)


class OperationCancelled(IssuerError):
    """The caller cancelled the operation or its deadline passed."""

    def __init__(self, detail: str = "operation cancelled") -> None:
        super().__init__(detail, retryable=False)
