"""The three-phase contract every challenge solver honours.

For each challenge the issuer calls, strictly in this order:

1. :meth:`Solver.present` once,
2. :meth:`Solver.check` repeatedly until it returns ``True`` or the
   issuer gives up,
3. :meth:`Solver.cleanup` exactly once, whatever happened before.
"""

from __future__ import annotations

import abc
import logging
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from acmeissuer.core.context import OperationContext
    from acmeissuer.core.types import ChallengeType
    from acmeissuer.models.certificate import Certificate
    from acmeissuer.models.order import Challenge

log = logging.getLogger(__name__)


class Solver(abc.ABC):
    """Base class for challenge solvers.

    Subclasses set :attr:`challenge_type` and implement the three
    phases.  Failures are reported by raising
    :class:`~acmeissuer.errors.SolverError`.
    """

    challenge_type: ClassVar[ChallengeType]

    @abc.abstractmethod
    def present(
        self,
        ctx: OperationContext,
        crt: Certificate,
        ch: Challenge,
    ) -> None:
        """Make proof of control for *ch* observable to the CA.

        The certificate is passed so any resource created here can be
        attributed to it.
        """

    @abc.abstractmethod
    def check(self, ch: Challenge) -> bool:
        """Check once whether the proof is visible yet.

        Must return ``False``, not raise, while the only problem is
        that propagation has not completed.  Raise
        :class:`~acmeissuer.errors.SolverError` only when the check
        itself could not be performed.  Must not sleep.
        """

    @abc.abstractmethod
    def cleanup(
        self,
        ctx: OperationContext,
        crt: Certificate,
        ch: Challenge,
    ) -> None:
        """Undo :meth:`present`.

        Must tolerate a partial or missing :meth:`present`.
        """
