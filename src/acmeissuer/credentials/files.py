"""Credential store over a directory of mounted secrets.

Layout::

    <root>/<scope>/<name>/<key>

which is what a volume-mounted secret looks like once projected into
a container, one directory per secret and one file per key.
"""

from __future__ import annotations

import logging
from pathlib import Path

from acmeissuer.credentials.base import CredentialStore
from acmeissuer.errors import CredentialNotFound

log = logging.getLogger(__name__)


class FileCredentialStore(CredentialStore):
    """Read secrets from files below *root*."""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _secret_dir(self, scope: str, name: str) -> Path:
        for part in (scope, name):
            if not part or "/" in part or part in (".", ".."):
                msg = f"invalid secret reference {scope!r}/{name!r}"
                raise CredentialNotFound(msg, scope=scope, name=name, key="")
        return self._root / scope / name

    def get(self, scope: str, name: str, key: str) -> bytes:
        secret_dir = self._secret_dir(scope, name)
        if not secret_dir.is_dir():
            msg = f"secret {scope}/{name} not found"
            raise CredentialNotFound(msg, scope=scope, name=name, key=key)
        if not key or "/" in key or key in (".", ".."):
            msg = f"invalid key {key!r} for secret {scope}/{name}"
            raise CredentialNotFound(msg, scope=scope, name=name, key=key)
        path = secret_dir / key
        try:
            return path.read_bytes()
        except FileNotFoundError:
            msg = f"no data for {key!r} in secret {scope}/{name}"
            raise CredentialNotFound(msg, scope=scope, name=name, key=key) from None
        except OSError as exc:
            log.warning("Could not read secret file %s: %s", path, exc)
            msg = f"could not read {key!r} in secret {scope}/{name}: {exc.strerror}"
            raise CredentialNotFound(msg, scope=scope, name=name, key=key) from exc
