"""Run provisioning scripts on behalf of solvers.

Scripts receive their arguments positionally and a few
``ACMEISSUER_*`` environment variables describing the certificate.
A non-zero exit status is a failure.
"""

from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
import time
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING

from acmeissuer.errors import SolverError

if TYPE_CHECKING:
    from acmeissuer.core.context import OperationContext

log = logging.getLogger(__name__)

# Variables passed through even when ambient credentials are withheld.
_BASE_ENV_VARS = ("PATH", "HOME", "LANG", "LC_ALL", "TZ", "TMPDIR")

_WAIT_STEP_SECONDS = 0.2
_TERMINATE_GRACE_SECONDS = 5.0


def script_environment(
    *,
    ambient: bool,
    extra: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build the environment for a provisioning script.

    With *ambient* false only a minimal base environment is inherited,
    so cloud credentials present in the process environment are not
    visible to the script.
    """
    if ambient:
        env = dict(os.environ)
    else:
        env = {k: os.environ[k] for k in _BASE_ENV_VARS if k in os.environ}
    if extra:
        env.update(extra)
    return env


def _signal_group(proc: subprocess.Popen, sig: int) -> None:
    with contextlib.suppress(ProcessLookupError):
        os.killpg(proc.pid, sig)


def _stop(proc: subprocess.Popen) -> None:
    """Terminate the script's process group, killing it if SIGTERM is ignored."""
    _signal_group(proc, signal.SIGTERM)
    try:
        proc.communicate(timeout=_TERMINATE_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        _signal_group(proc, signal.SIGKILL)
        proc.communicate()


def run_script(
    ctx: OperationContext,
    argv: Sequence[str],
    *,
    phase: str,
    timeout: float,
    env: Mapping[str, str] | None = None,
) -> None:
    """Run *argv*, raising :class:`SolverError` on any failure.

    The effective timeout is the smaller of *timeout* and the time left
    on *ctx*.  The script is stopped as soon as *ctx* is cancelled and
    :class:`OperationCancelled` is raised.
    """
    ctx.raise_if_cancelled()
    remaining = ctx.remaining()
    effective = timeout if remaining is None else min(timeout, remaining)

    log.info("Running %s script %s", phase, argv[0])
    try:
        proc = subprocess.Popen(  # noqa: S603
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            start_new_session=True,
            env=dict(env) if env is not None else None,
        )
    except OSError as exc:
        msg = f"could not run {phase} script {argv[0]}: {exc}"
        raise SolverError(msg, phase=phase, retryable=False) from exc

    end = time.monotonic() + effective
    while True:
        if ctx.cancelled:
            log.warning("Stopping %s script %s: %s", phase, argv[0], ctx.reason)
            _stop(proc)
            ctx.raise_if_cancelled()
        left = end - time.monotonic()
        if left <= 0:
            _stop(proc)
            msg = f"{phase} script {argv[0]} timed out after {effective:.0f}s"
            raise SolverError(msg, phase=phase)
        try:
            stdout, stderr = proc.communicate(timeout=min(_WAIT_STEP_SECONDS, left))
            break
        except subprocess.TimeoutExpired:
            continue

    if proc.returncode != 0:
        stderr = (stderr or "").strip()
        msg = f"{phase} script {argv[0]} exited with status {proc.returncode}"
        if stderr:
            msg = f"{msg}: {stderr.splitlines()[-1]}"
        raise SolverError(msg, phase=phase)

    if stdout:
        log.debug("%s script output: %s", phase, stdout.strip())
