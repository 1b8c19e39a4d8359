"""Challenge solver registry.

A closed mapping from :class:`ChallengeType` to the solver instance
built for it.  Both instances are supplied by the composition root.

Usage::

    registry = SolverRegistry(http01=http_solver, dns01=dns_solver)
    solver = registry.solver_for("dns-01")
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING

from acmeissuer.core.types import ChallengeType
from acmeissuer.errors import UnsupportedChallengeType

if TYPE_CHECKING:
    from acmeissuer.solvers.base import Solver

log = logging.getLogger(__name__)


class SolverRegistry:
    """Registry of the HTTP-01 and DNS-01 solvers.

    Parameters
    ----------
    http01:
        Solver used for ``http-01`` challenges.
    dns01:
        Solver used for ``dns-01`` challenges.

    """

    def __init__(self, *, http01: Solver, dns01: Solver) -> None:
        self._solvers = MappingProxyType(
            {
                ChallengeType.HTTP_01: http01,
                ChallengeType.DNS_01: dns01,
            }
        )

    def solver_for(self, challenge_type: str) -> Solver:
        """Return the solver for *challenge_type*.

        Raises
        ------
        UnsupportedChallengeType
            For any type other than ``http-01`` and ``dns-01``.

        """
        try:
            key = ChallengeType(challenge_type)
        except ValueError:
            raise UnsupportedChallengeType(challenge_type) from None
        return self._solvers[key]

    def is_supported(self, challenge_type: str) -> bool:
        return challenge_type in self._solvers

    @property
    def supported_types(self) -> list[ChallengeType]:
        return list(self._solvers)
