"""Root conftest for the acmeissuer test suite."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
import yaml

# ---------------------------------------------------------------------------
# Make ``src/`` importable without installing the package
# ---------------------------------------------------------------------------
_SRC = str(Path(__file__).resolve().parent.parent / "src")
if _SRC not in sys.path:
    sys.path.insert(0, _SRC)


# ---------------------------------------------------------------------------
# Account keys
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def rsa_key():
    """A 2048-bit RSA private key shared by the whole session."""
    from cryptography.hazmat.primitives.asymmetric import rsa

    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_key_pem(rsa_key) -> bytes:
    """PEM (PKCS#8, unencrypted) encoding of :func:`rsa_key`."""
    from cryptography.hazmat.primitives import serialization

    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


# ---------------------------------------------------------------------------
# Minimal config data shared by multiple test modules
# ---------------------------------------------------------------------------


@pytest.fixture()
def minimal_config_data() -> dict:
    """Return a dict containing the minimum required config fields."""
    return {
        "issuer": {
            "name": "letsencrypt",
            "namespace": "cert-manager",
            "kind": "Issuer",
            "acme": {
                "server": "https://ca.example/directory",
                "email": "a@b.com",
                "privateKeyRef": {"name": "acct-key"},
            },
        },
        "solvers": {"http01": {"webroot": "/srv/www"}},
    }


@pytest.fixture()
def tmp_config_file(tmp_path: Path, minimal_config_data: dict) -> Path:
    """Write *minimal_config_data* to a temp YAML file and return its path."""
    cfg = tmp_path / "config.yaml"
    cfg.write_text(
        yaml.safe_dump(minimal_config_data, default_flow_style=False, sort_keys=False),
        encoding="utf-8",
    )
    return cfg


@pytest.fixture()
def issuer_config():
    """The issuer configuration from the reference scenario."""
    from acmeissuer.config.settings import (
        AcmeIssuerSettings,
        IssuerConfig,
        SecretKeySelector,
    )

    return IssuerConfig(
        name="letsencrypt",
        namespace="cert-manager",
        acme=AcmeIssuerSettings(
            server="https://ca.example/directory",
            email="a@b.com",
            private_key_ref=SecretKeySelector(name="acct-key"),
        ),
    )


@pytest.fixture()
def certificate():
    """A certificate for ``example.com`` with an empty status."""
    from acmeissuer.models.certificate import Certificate

    return Certificate(name="web", namespace="default", common_name="example.com")


# ---------------------------------------------------------------------------
# Logger state cleanup: configure_logging() detaches the acmeissuer tree
# from the root logger, which would hide records from caplog.
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def reset_acmeissuer_logger():
    """Restore the ``acmeissuer`` logger after every test."""
    import logging

    logger = logging.getLogger("acmeissuer")
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
    logging.getLogger("acmeissuer.events").setLevel(logging.NOTSET)
