"""Per-issuance logging context.

The orchestrator opens an :func:`issuance_scope` around each pass so
every record logged underneath, from any module, carries the
certificate and issuer it belongs to.
"""

from __future__ import annotations

import contextvars
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_certificate: contextvars.ContextVar[str] = contextvars.ContextVar("certificate", default="-")
_issuer: contextvars.ContextVar[str] = contextvars.ContextVar("issuer", default="-")


@contextmanager
def issuance_scope(*, certificate: str, issuer: str) -> Generator[None, None, None]:
    cert_token = _certificate.set(certificate)
    issuer_token = _issuer.set(issuer)
    try:
        yield
    finally:
        _issuer.reset(issuer_token)
        _certificate.reset(cert_token)


def current_certificate() -> str:
    return _certificate.get()


def current_issuer() -> str:
    return _issuer.get()
