"""Abstract credential store.

A credential store holds named entries ("secrets") scoped to a
namespace, each mapping string keys to raw bytes.  The issuer only ever
reads from it.
"""

from __future__ import annotations

import abc


class CredentialStore(abc.ABC):
    """Read-only access to scoped secrets."""

    @abc.abstractmethod
    def get(self, scope: str, name: str, key: str) -> bytes:
        """Return the bytes stored under *key* in secret *name*.

        Raises
        ------
        CredentialNotFound
            If the secret or the key within it does not exist.

        """
