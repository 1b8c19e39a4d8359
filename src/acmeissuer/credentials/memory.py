"""In-memory credential store, for embedding and tests."""

from __future__ import annotations

from collections.abc import Mapping

from acmeissuer.credentials.base import CredentialStore
from acmeissuer.errors import CredentialNotFound


class MemoryCredentialStore(CredentialStore):
    """Credential store backed by a nested mapping.

    ``secrets[(scope, name)]`` is a mapping of key to bytes.
    """

    def __init__(
        self,
        secrets: Mapping[tuple[str, str], Mapping[str, bytes]] | None = None,
    ) -> None:
        self._secrets: dict[tuple[str, str], dict[str, bytes]] = {
            k: dict(v) for k, v in (secrets or {}).items()
        }

    def put(self, scope: str, name: str, data: Mapping[str, bytes]) -> None:
        self._secrets[(scope, name)] = dict(data)

    def get(self, scope: str, name: str, key: str) -> bytes:
        secret = self._secrets.get((scope, name))
        if secret is None:
            msg = f"secret {scope}/{name} not found"
            raise CredentialNotFound(msg, scope=scope, name=name, key=key)
        try:
            return secret[key]
        except KeyError:
            msg = f"no data for {key!r} in secret {scope}/{name}"
            raise CredentialNotFound(msg, scope=scope, name=name, key=key) from None
