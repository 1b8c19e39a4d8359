"""Credential store access and account key resolution."""

from acmeissuer.credentials.base import CredentialStore
from acmeissuer.credentials.files import FileCredentialStore
from acmeissuer.credentials.keys import (
    DEFAULT_PRIVATE_KEY_SLOT,
    account_private_key_ref,
    resolve_account_key,
)
from acmeissuer.credentials.memory import MemoryCredentialStore

__all__ = [
    "DEFAULT_PRIVATE_KEY_SLOT",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "account_private_key_ref",
    "resolve_account_key",
]
