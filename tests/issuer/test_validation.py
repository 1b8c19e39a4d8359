"""Tests for acmeissuer.issuer.validation."""

from __future__ import annotations

import dataclasses

import pytest

from acmeissuer.config.settings import AcmeIssuerSettings, SecretKeySelector
from acmeissuer.errors import ConfigError
from acmeissuer.issuer.validation import validate_issuer_config


def test_complete_config_passes(issuer_config):
    validate_issuer_config(issuer_config, "cert-manager")


def test_all_missing_fields_are_named(issuer_config):
    config = dataclasses.replace(
        issuer_config,
        acme=AcmeIssuerSettings(server="", email="", private_key_ref=SecretKeySelector(name="")),
    )

    with pytest.raises(ConfigError) as exc_info:
        validate_issuer_config(config, "cert-manager")

    assert exc_info.value.fields == (
        "acme.server",
        "acme.privateKeyRef.name",
        "acme.email",
    )
    assert "required fields" in str(exc_info.value)


def test_key_slot_is_optional(issuer_config):
    acme = dataclasses.replace(issuer_config.acme, private_key_ref=SecretKeySelector(name="k", key=""))
    validate_issuer_config(dataclasses.replace(issuer_config, acme=acme), "ns")


def test_missing_acme_block(issuer_config):
    with pytest.raises(ConfigError) as exc_info:
        validate_issuer_config(dataclasses.replace(issuer_config, acme=None), "ns")
    assert exc_info.value.fields == ("acme",)


def test_missing_namespace(issuer_config):
    with pytest.raises(ConfigError, match="resource namespace"):
        validate_issuer_config(issuer_config, "")
