"""Tests for acmeissuer.config: loading, env resolution and validation."""

from __future__ import annotations

import json

import pytest
import yaml

from acmeissuer.config import AcmeissuerConfig, ConfigValidationError
from acmeissuer.config.settings import build_issuer_config, build_settings
from acmeissuer.core.types import IssuerKind


def _write(tmp_path, data, name="config.yaml"):
    path = tmp_path / name
    if name.endswith(".json"):
        path.write_text(json.dumps(data), encoding="utf-8")
    else:
        path.write_text(yaml.safe_dump(data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoading:
    def test_yaml_file(self, tmp_config_file):
        config = AcmeissuerConfig(config_file=tmp_config_file)
        acme = config.settings.issuer.acme

        assert acme.server == "https://ca.example/directory"
        assert acme.email == "a@b.com"
        assert acme.private_key_ref.name == "acct-key"
        assert acme.private_key_ref.key == ""
        assert acme.skip_tls_verify is False
        assert "config.yaml" in repr(config)

    def test_load_returns_settings(self, tmp_config_file):
        settings = AcmeissuerConfig.load(tmp_config_file)
        assert settings.issuer.name == "letsencrypt"

    def test_json_file(self, tmp_path, minimal_config_data):
        path = _write(tmp_path, minimal_config_data, "config.json")
        assert AcmeissuerConfig(config_file=path).settings.issuer.name == "letsencrypt"

    def test_empty_file_reports_missing_issuer(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="issuer section is required"):
            AcmeissuerConfig(config_file=path)

    def test_non_mapping_top_level(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="must be a mapping"):
            AcmeissuerConfig(config_file=path)

    def test_dotted_get(self, minimal_config_data):
        config = AcmeissuerConfig(data=minimal_config_data)
        assert config.get("issuer.acme.email") == "a@b.com"
        assert config.get("issuer.acme.missing", "x") == "x"
        assert config.get("solvers.http01.webroot.deeper") is None


class TestEnvResolution:
    def test_variable_and_default(self, monkeypatch, minimal_config_data):
        monkeypatch.setenv("ACME_EMAIL", "ops@example.com")
        minimal_config_data["issuer"]["acme"]["email"] = "${ACME_EMAIL}"
        minimal_config_data["dns01Nameservers"] = ["${NS1:-1.1.1.1:53}"]

        settings = AcmeissuerConfig(data=minimal_config_data).settings

        assert settings.issuer.acme.email == "ops@example.com"
        assert settings.dns01_nameservers == ("1.1.1.1:53",)

    def test_unset_without_default(self, monkeypatch, minimal_config_data):
        monkeypatch.delenv("ACME_MISSING", raising=False)
        minimal_config_data["issuer"]["acme"]["server"] = "${ACME_MISSING}"
        with pytest.raises(ConfigValidationError, match="issuer.acme.server"):
            AcmeissuerConfig(data=minimal_config_data)


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_section_defaults(self, minimal_config_data):
        settings = build_settings(minimal_config_data)

        assert settings.transport.dial_timeout_seconds == 5.0
        assert settings.transport.tls_handshake_timeout_seconds == 10.0
        assert settings.transport.request_timeout_seconds == 30.0
        assert settings.transport.max_idle_connections == 100
        assert settings.transport.idle_connection_timeout_seconds == 90.0
        assert settings.challenges.interval_seconds == 5.0
        assert settings.challenges.timeout_seconds == 300.0
        assert settings.challenges.cleanup_grace_seconds == 10.0
        assert settings.solvers.http01.responder == "webroot"
        assert settings.solvers.http01.port == 80
        assert settings.credentials.directory == "/var/run/secrets/acmeissuer"
        assert settings.logging.level == "INFO"
        assert settings.dns01_nameservers == ()

    def test_ambient_flag_follows_kind(self, minimal_config_data):
        minimal_config_data["issuerAmbientCredentials"] = False
        minimal_config_data["clusterIssuerAmbientCredentials"] = True
        assert build_settings(minimal_config_data).issuer.ambient_credentials is False

        minimal_config_data["issuer"]["kind"] = "ClusterIssuer"
        settings = build_settings(minimal_config_data)
        assert settings.issuer.ambient_credentials is True
        assert settings.issuer.kind == IssuerKind.CLUSTER_ISSUER

    def test_issuer_without_acme_block(self):
        config = build_issuer_config({"name": "x"})
        assert config.acme is None
        assert config.kind == IssuerKind.ISSUER


# ---------------------------------------------------------------------------
# Cross-field validation
# ---------------------------------------------------------------------------


class TestValidation:
    @pytest.mark.parametrize(
        ("mutate", "message"),
        [
            (lambda d: d["issuer"].update(kind="Namespace"), "issuer.kind"),
            (lambda d: d["issuer"].pop("name"), "issuer.name is required"),
            (lambda d: d["issuer"]["acme"].update(server="ftp://ca"), "http(s) URL"),
            (lambda d: d.update(dns01Nameservers="8.8.8.8"), "dns01Nameservers"),
            (lambda d: d.update(challenges={"pollIntervalSeconds": 0}), "pollIntervalSeconds"),
            (
                lambda d: d.update(challenges={"pollIntervalSeconds": 60, "timeoutSeconds": 30}),
                "must be <=",
            ),
            (lambda d: d["solvers"]["http01"].update(responder="ingress"), "responder"),
            (lambda d: d["solvers"]["http01"].update(webroot=""), "webroot is required"),
            (
                lambda d: d["solvers"]["http01"].update(responder="callback"),
                "deployScript is required",
            ),
            (lambda d: d["solvers"].update(dns01={"createScript": "/c"}), "deleteScript"),
            (lambda d: d.update(transport={"requestTimeoutSeconds": -1}), "requestTimeoutSeconds"),
            (lambda d: d.update(logging={"format": "xml"}), "logging.format"),
        ],
    )
    def test_rejected(self, minimal_config_data, mutate, message):
        mutate(minimal_config_data)
        with pytest.raises(ConfigValidationError) as exc_info:
            AcmeissuerConfig(data=minimal_config_data)
        assert any(message in e for e in exc_info.value.errors)

    def test_all_errors_collected(self, minimal_config_data):
        minimal_config_data["issuer"]["kind"] = "Bogus"
        minimal_config_data["logging"] = {"format": "xml"}
        with pytest.raises(ConfigValidationError) as exc_info:
            AcmeissuerConfig(data=minimal_config_data)
        assert len(exc_info.value.errors) == 2

    def test_skip_tls_verify_warns(self, minimal_config_data, caplog):
        minimal_config_data["issuer"]["acme"]["skipTLSVerify"] = True
        with caplog.at_level("WARNING", logger="acmeissuer.config"):
            config = AcmeissuerConfig(data=minimal_config_data)
        assert config.settings.issuer.acme.skip_tls_verify is True
        assert "skipTLSVerify" in caplog.text


# ---------------------------------------------------------------------------
# Schema (value types)
# ---------------------------------------------------------------------------


class TestSchema:
    @pytest.mark.parametrize(
        ("mutate", "path"),
        [
            (
                lambda d: d.update(challenges={"pollIntervalSeconds": "5"}),
                "challenges.pollIntervalSeconds",
            ),
            (
                lambda d: d["issuer"]["acme"].update(skipTLSVerify="false"),
                "issuer.acme.skipTLSVerify",
            ),
            (lambda d: d.update(issuerAmbientCredentials="yes"), "issuerAmbientCredentials"),
            (lambda d: d["solvers"]["http01"].update(port="80"), "solvers.http01.port"),
            (lambda d: d.update(dns01Nameservers=[53]), "dns01Nameservers[0]"),
            (
                lambda d: d.update(transport={"maxIdleConnections": 0}),
                "transport.maxIdleConnections",
            ),
            (lambda d: d.update(issuer="letsencrypt"), "issuer"),
        ],
    )
    def test_wrong_type_rejected(self, minimal_config_data, mutate, path):
        mutate(minimal_config_data)
        with pytest.raises(ConfigValidationError) as exc_info:
            AcmeissuerConfig(data=minimal_config_data)
        assert any(e.startswith(f"{path}: ") for e in exc_info.value.errors)

    def test_type_errors_collected_before_cross_field_checks(self, minimal_config_data):
        minimal_config_data["challenges"] = {"pollIntervalSeconds": "5", "timeoutSeconds": "1"}
        with pytest.raises(ConfigValidationError) as exc_info:
            AcmeissuerConfig(data=minimal_config_data)
        assert exc_info.value.errors == [
            "challenges.pollIntervalSeconds: '5' is not of type 'number'",
            "challenges.timeoutSeconds: '1' is not of type 'number'",
        ]

    def test_empty_sections_accepted(self, minimal_config_data):
        minimal_config_data.update(challenges=None, transport=None, dns01Nameservers=None)
        settings = AcmeissuerConfig(data=minimal_config_data).settings
        assert settings.challenges.interval_seconds == 5.0
        assert settings.dns01_nameservers == ()

    @pytest.mark.parametrize("entry", ["8.8.8.8:dns", "[2001:db8::1", "1.1.1.1:0"])
    def test_bad_nameserver_entry(self, minimal_config_data, entry):
        minimal_config_data["dns01Nameservers"] = ["9.9.9.9", entry]
        with pytest.raises(ConfigValidationError) as exc_info:
            AcmeissuerConfig(data=minimal_config_data)
        assert any(
            e.startswith("dns01Nameservers: invalid nameserver") for e in exc_info.value.errors
        )
