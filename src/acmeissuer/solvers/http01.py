"""HTTP-01 challenge solver (RFC 8555 §8.3).

Two responders are supported:

``webroot``
    Write the key authorization to
    ``{webroot}/.well-known/acme-challenge/{token}`` for an existing web
    server to serve.
``callback``
    Run ``deploy-script <domain> <token> <key-authorization>`` and
    ``cleanup-script <domain> <token>``.

Propagation is checked by fetching the well-known URL on the
configured port and comparing the body with the key authorization.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import TYPE_CHECKING

import requests

from acmeissuer.core.types import ChallengeType
from acmeissuer.errors import SolverError
from acmeissuer.solvers.base import Solver
from acmeissuer.solvers.callbacks import run_script

if TYPE_CHECKING:
    from acmeissuer.config.settings import Http01SolverSettings
    from acmeissuer.core.context import OperationContext
    from acmeissuer.models.certificate import Certificate
    from acmeissuer.models.order import Challenge

log = logging.getLogger(__name__)

WELL_KNOWN_PATH = ".well-known/acme-challenge"

# RFC 8555 tokens are base64url without padding.
_TOKEN_RE = re.compile(r"^[A-Za-z0-9_-]+$")


def challenge_url(domain: str, token: str, port: int = 80) -> str:
    host = domain if port == 80 else f"{domain}:{port}"  # noqa: PLR2004
    return f"http://{host}/{WELL_KNOWN_PATH}/{token}"


class Http01Solver(Solver):
    """Solve HTTP-01 challenges via a webroot or callback scripts."""

    challenge_type = ChallengeType.HTTP_01

    def __init__(
        self,
        settings: Http01SolverSettings,
        session: requests.Session | None = None,
    ) -> None:
        self._settings = settings
        self._session = session or requests.Session()

    def _token_path(self, token: str) -> Path:
        if not _TOKEN_RE.match(token):
            msg = f"refusing to write challenge file for malformed token {token!r}"
            raise SolverError(msg, phase="present", retryable=False)
        if not self._settings.webroot:
            msg = "http-01 webroot responder has no webroot configured"
            raise SolverError(msg, phase="present", retryable=False)
        return Path(self._settings.webroot) / WELL_KNOWN_PATH / token

    def present(self, ctx: OperationContext, crt: Certificate, ch: Challenge) -> None:
        if ch.wildcard:
            msg = f"http-01 cannot prove control of wildcard identifier *.{ch.domain}"
            raise SolverError(msg, phase="present", retryable=False)
        ctx.raise_if_cancelled()

        if self._settings.responder == "callback":
            if not self._settings.deploy_script:
                msg = "http-01 callback responder has no deployScript configured"
                raise SolverError(msg, phase="present", retryable=False)
            log.info("Deploying HTTP-01 token for %s (%s)", ch.domain, crt.ref)
            run_script(
                ctx,
                [self._settings.deploy_script, ch.domain, ch.token, ch.key_authorization],
                phase="present",
                timeout=self._settings.script_timeout_seconds,
            )
            return

        path = self._token_path(ch.token)
        log.info("Writing HTTP-01 token for %s to %s (%s)", ch.domain, path, crt.ref)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(ch.key_authorization, encoding="ascii")
        except OSError as exc:
            msg = f"could not write challenge file {path}: {exc}"
            raise SolverError(msg, phase="present") from exc

    def check(self, ch: Challenge) -> bool:
        url = challenge_url(ch.domain, ch.token, self._settings.port)
        try:
            response = self._session.get(
                url,
                timeout=self._settings.check_timeout_seconds,
                allow_redirects=True,
            )
        except (requests.ConnectionError, requests.Timeout) as exc:
            log.debug("HTTP-01 self-check of %s not reachable yet: %s", url, exc)
            return False
        except requests.RequestException as exc:
            msg = f"HTTP-01 self-check of {url} failed: {exc}"
            raise SolverError(msg, phase="check") from exc

        if response.status_code != 200:  # noqa: PLR2004
            log.debug("HTTP-01 self-check of %s returned %d", url, response.status_code)
            return False
        if response.text.strip() != ch.key_authorization:
            log.debug("HTTP-01 self-check of %s returned unexpected content", url)
            return False
        return True

    def cleanup(self, ctx: OperationContext, crt: Certificate, ch: Challenge) -> None:
        if self._settings.responder == "callback":
            if not self._settings.cleanup_script:
                log.warning("http-01 callback responder has no cleanupScript configured")
                return
            log.info("Removing HTTP-01 token for %s (%s)", ch.domain, crt.ref)
            run_script(
                ctx,
                [self._settings.cleanup_script, ch.domain, ch.token],
                phase="cleanup",
                timeout=self._settings.script_timeout_seconds,
            )
            return

        if not self._settings.webroot or not _TOKEN_RE.match(ch.token):
            # Nothing can have been written for this token.
            return
        path = self._token_path(ch.token)
        log.info("Removing HTTP-01 token file %s (%s)", path, crt.ref)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            msg = f"could not remove challenge file {path}: {exc}"
            raise SolverError(msg, phase="cleanup") from exc
