"""Drive each challenge through Present, Check and CleanUp.

Per challenge the states are::

    pending -> presented -> ready | timed_out | check_failed | cancelled
            -> present_failed | cancelled
    (any state but pending) -> cleaned_up

Every task that left ``pending`` is cleaned up exactly once by
:func:`cleanup_all`.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from acmeissuer.core.types import ChallengeState
from acmeissuer.errors import IssuerError, OperationCancelled, SolverError

if TYPE_CHECKING:
    from acmeissuer.config.settings import PollSettings
    from acmeissuer.core.context import OperationContext
    from acmeissuer.models.certificate import Certificate
    from acmeissuer.models.order import Challenge
    from acmeissuer.solvers.base import Solver

log = logging.getLogger(__name__)


@dataclass
class ChallengeTask:
    """One challenge paired with the solver selected for it."""

    challenge: Challenge
    solver: Solver
    state: ChallengeState = ChallengeState.PENDING
    error: BaseException | None = None

    @property
    def needs_cleanup(self) -> bool:
        return self.state not in (ChallengeState.PENDING, ChallengeState.CLEANED_UP)

    @property
    def label(self) -> str:
        name = f"*.{self.challenge.domain}" if self.challenge.wildcard else self.challenge.domain
        return f"{self.challenge.type} {name}"


def _as_solver_error(exc: Exception, phase: str, task: ChallengeTask) -> IssuerError:
    """Return *exc* if it is already typed, else wrap it in a chained SolverError."""
    if isinstance(exc, IssuerError):
        return exc
    msg = f"{phase} failed for {task.label}: {exc}"
    error = SolverError(msg, phase=phase)
    error.__cause__ = exc
    return error


def present_all(
    ctx: OperationContext,
    crt: Certificate,
    tasks: Sequence[ChallengeTask],
) -> None:
    """Call ``present`` for each task in turn, stopping at the first failure."""
    for task in tasks:
        ctx.raise_if_cancelled()
        log.info("Presenting %s", task.label)
        try:
            task.solver.present(ctx, crt, task.challenge)
        except OperationCancelled as exc:
            task.state = ChallengeState.CANCELLED
            task.error = exc
            raise
        except Exception as exc:
            task.state = ChallengeState.PRESENT_FAILED
            task.error = exc
            log.warning("Present failed for %s: %s", task.label, exc)
            raise _as_solver_error(exc, "present", task)  # noqa: B904
        except BaseException as exc:
            task.state = ChallengeState.CANCELLED
            task.error = exc
            raise
        task.state = ChallengeState.PRESENTED


def poll_until_ready(
    ctx: OperationContext,
    tasks: Sequence[ChallengeTask],
    poll: PollSettings,
    clock: Callable[[], float] = time.monotonic,
) -> None:
    """Poll ``check`` on every presented task until all report ready.

    A ``False`` result only means "not yet".  The poll gives up after
    ``poll.timeout_seconds`` and raises a retryable :class:`SolverError`.

    Raises
    ------
    SolverError
        On timeout or when a check could not be performed.
    OperationCancelled
        If *ctx* is cancelled while waiting.

    """
    deadline = clock() + poll.timeout_seconds
    attempt = 0
    while True:
        attempt += 1
        for task in tasks:
            if task.state != ChallengeState.PRESENTED:
                continue
            ctx.raise_if_cancelled()
            try:
                ready = task.solver.check(task.challenge)
            except OperationCancelled:
                task.state = ChallengeState.CANCELLED
                raise
            except Exception as exc:
                task.state = ChallengeState.CHECK_FAILED
                task.error = exc
                log.warning("Check failed for %s: %s", task.label, exc)
                raise _as_solver_error(exc, "check", task)  # noqa: B904
            if ready:
                log.info("%s is ready after %d check(s)", task.label, attempt)
                task.state = ChallengeState.READY

        waiting = [t for t in tasks if t.state == ChallengeState.PRESENTED]
        if not waiting:
            return

        remaining = deadline - clock()
        if remaining <= 0:
            for task in waiting:
                task.state = ChallengeState.TIMED_OUT
            labels = ", ".join(t.label for t in waiting)
            msg = f"timed out after {poll.timeout_seconds:g}s waiting for {labels}"
            raise SolverError(msg, phase="check")

        log.debug("Waiting for %d challenge(s) to propagate", len(waiting))
        try:
            ctx.sleep(min(poll.interval_seconds, remaining))
        except OperationCancelled:
            for task in waiting:
                task.state = ChallengeState.CANCELLED
            raise


def cleanup_all(
    ctx: OperationContext,
    crt: Certificate,
    tasks: Sequence[ChallengeTask],
) -> IssuerError | None:
    """Call ``cleanup`` once for every task that needs it.

    Failures are logged and do not stop the remaining cleanups.  The
    first failure is returned so the caller can decide whether to raise
    it.
    """
    first_error: IssuerError | None = None
    for task in tasks:
        if not task.needs_cleanup:
            continue
        previous = task.state
        task.state = ChallengeState.CLEANED_UP
        log.info("Cleaning up %s (was %s)", task.label, previous)
        try:
            task.solver.cleanup(ctx, crt, task.challenge)
        except Exception as exc:
            log.exception("Cleanup failed for %s", task.label)
            if first_error is None:
                first_error = _as_solver_error(exc, "cleanup", task)
    return first_error
