"""Tests for acmeissuer.solvers.dns01."""

from __future__ import annotations

import base64
import hashlib
import threading
import time
from unittest.mock import MagicMock, patch

import dns.exception
import dns.resolver
import pytest

from acmeissuer.config.settings import Dns01SolverSettings
from acmeissuer.core.context import OperationContext
from acmeissuer.errors import OperationCancelled, SolverError
from acmeissuer.models.certificate import (
    AcmeCertificateConfig,
    Certificate,
    Dns01ChallengeConfig,
    DomainSolverConfig,
)
from acmeissuer.models.order import Challenge
from acmeissuer.solvers.dns01 import (
    Dns01Solver,
    parse_nameserver,
    record_name,
    txt_record_value,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

KEY_AUTHZ = "test-token.mock-thumbprint"
EXPECTED = (
    base64.urlsafe_b64encode(hashlib.sha256(KEY_AUTHZ.encode("ascii")).digest())
    .rstrip(b"=")
    .decode("ascii")
)
SETTINGS = Dns01SolverSettings(
    create_script="/usr/local/bin/dns-create",
    delete_script="/usr/local/bin/dns-delete",
    script_timeout_seconds=30,
    query_timeout_seconds=3,
)


def _challenge(domain: str = "example.com", wildcard: bool = False) -> Challenge:
    return Challenge(
        type="dns-01",
        url="https://ca.example/chall/1",
        token="test-token",
        key_authorization=KEY_AUTHZ,
        domain=domain,
        wildcard=wildcard,
    )


def _answer(*values: str) -> MagicMock:
    answer = MagicMock()
    rdatas = []
    for v in values:
        rdata = MagicMock()
        rdata.strings = (v.encode("ascii"),)
        rdatas.append(rdata)
    answer.__iter__ = lambda self: iter(rdatas)
    return answer


# ---------------------------------------------------------------------------
# Helpers under test
# ---------------------------------------------------------------------------


def test_txt_record_value():
    assert txt_record_value(KEY_AUTHZ) == EXPECTED
    assert "=" not in EXPECTED


@pytest.mark.parametrize(
    ("domain", "expected"),
    [
        ("example.com", "_acme-challenge.example.com"),
        ("*.example.com", "_acme-challenge.example.com"),
    ],
)
def test_record_name(domain, expected):
    assert record_name(domain) == expected


@pytest.mark.parametrize(
    ("entry", "expected"),
    [
        ("8.8.8.8", ("8.8.8.8", 53)),
        ("8.8.8.8:53", ("8.8.8.8", 53)),
        ("10.0.0.1:5353", ("10.0.0.1", 5353)),
        ("[2001:db8::1]:5353", ("2001:db8::1", 5353)),
        ("[2001:db8::1]", ("2001:db8::1", 53)),
        ("2001:db8::1", ("2001:db8::1", 53)),
    ],
)
def test_parse_nameserver(entry, expected):
    assert parse_nameserver(entry) == expected


@pytest.mark.parametrize(
    "entry",
    ["8.8.8.8:dns", "8.8.8.8:0", "8.8.8.8:70000", ":53", "", "[2001:db8::1", "[2001:db8::1]:x"],
)
def test_parse_nameserver_rejects(entry):
    with pytest.raises(ValueError, match="invalid nameserver"):
        parse_nameserver(entry)


# ---------------------------------------------------------------------------
# Present / CleanUp
# ---------------------------------------------------------------------------


class TestPresentAndCleanup:
    @patch("acmeissuer.solvers.dns01.run_script")
    def test_present_runs_create_script(self, mock_run):
        crt = Certificate(
            name="web",
            namespace="default",
            common_name="example.com",
            acme=AcmeCertificateConfig(
                config=(
                    DomainSolverConfig(
                        domains=("example.com",),
                        dns01=Dns01ChallengeConfig(provider="route53"),
                    ),
                ),
            ),
        )
        ctx = OperationContext.background()
        solver = Dns01Solver(SETTINGS)

        solver.present(ctx, crt, _challenge())

        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args[0] is ctx
        assert args[1] == [
            "/usr/local/bin/dns-create",
            "example.com",
            "_acme-challenge.example.com",
            EXPECTED,
        ]
        assert kwargs["phase"] == "present"
        assert kwargs["timeout"] == 30
        assert kwargs["env"]["ACMEISSUER_DNS01_PROVIDER"] == "route53"
        assert kwargs["env"]["ACMEISSUER_CERTIFICATE"] == "default/web"

    @patch("acmeissuer.solvers.dns01.run_script")
    def test_wildcard_provider_lookup(self, mock_run):
        crt = Certificate(
            name="wild",
            acme=AcmeCertificateConfig(
                config=(
                    DomainSolverConfig(
                        domains=("*.example.com",),
                        dns01=Dns01ChallengeConfig(provider="cloudflare"),
                    ),
                ),
            ),
        )
        Dns01Solver(SETTINGS).present(OperationContext.background(), crt, _challenge(wildcard=True))

        assert mock_run.call_args.kwargs["env"]["ACMEISSUER_DNS01_PROVIDER"] == "cloudflare"

    @patch("acmeissuer.solvers.dns01.run_script")
    def test_ambient_environment_withheld(self, mock_run, monkeypatch):
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "hunter2")
        crt = Certificate(name="web", common_name="example.com")

        Dns01Solver(SETTINGS).present(OperationContext.background(), crt, _challenge())
        assert "AWS_SECRET_ACCESS_KEY" not in mock_run.call_args.kwargs["env"]

        Dns01Solver(SETTINGS, ambient_credentials=True).present(
            OperationContext.background(), crt, _challenge()
        )
        assert mock_run.call_args.kwargs["env"]["AWS_SECRET_ACCESS_KEY"] == "hunter2"

    def test_present_without_script(self):
        solver = Dns01Solver(Dns01SolverSettings())
        with pytest.raises(SolverError) as exc_info:
            solver.present(OperationContext.background(), Certificate(name="c"), _challenge())
        assert exc_info.value.retryable is False
        assert exc_info.value.phase == "present"

    def test_cancel_stops_running_create_script(self, tmp_path):
        script = tmp_path / "dns-create"
        script.write_text("#!/bin/sh\nsleep 30\n", encoding="utf-8")
        script.chmod(0o755)
        solver = Dns01Solver(Dns01SolverSettings(create_script=str(script)))
        ctx = OperationContext.background()
        timer = threading.Timer(0.2, ctx.cancel)
        timer.start()

        start = time.monotonic()
        try:
            with pytest.raises(OperationCancelled):
                solver.present(ctx, Certificate(name="c"), _challenge())
        finally:
            timer.cancel()
        assert time.monotonic() - start < 5

    @patch("acmeissuer.solvers.dns01.run_script")
    def test_cleanup_runs_delete_script(self, mock_run):
        Dns01Solver(SETTINGS).cleanup(
            OperationContext.background(), Certificate(name="c"), _challenge()
        )
        assert mock_run.call_args.args[1][0] == "/usr/local/bin/dns-delete"
        assert mock_run.call_args.kwargs["phase"] == "cleanup"

    @patch("acmeissuer.solvers.dns01.run_script")
    def test_cleanup_without_script_is_a_noop(self, mock_run):
        settings = Dns01SolverSettings(create_script="/bin/create")
        Dns01Solver(settings).cleanup(
            OperationContext.background(), Certificate(name="c"), _challenge()
        )
        mock_run.assert_not_called()


# ---------------------------------------------------------------------------
# Check
# ---------------------------------------------------------------------------


class TestCheck:
    @patch("acmeissuer.solvers.dns01.dns.resolver.Resolver")
    def test_matching_record(self, mock_resolver_cls):
        resolver = MagicMock()
        mock_resolver_cls.return_value = resolver
        resolver.resolve.return_value = _answer("other", EXPECTED)

        assert Dns01Solver(SETTINGS).check(_challenge()) is True
        resolver.resolve.assert_called_once_with("_acme-challenge.example.com", "TXT")
        assert resolver.lifetime == 3

    @patch("acmeissuer.solvers.dns01.dns.resolver.Resolver")
    def test_configured_nameservers(self, mock_resolver_cls):
        resolver = MagicMock()
        mock_resolver_cls.return_value = resolver
        resolver.resolve.return_value = _answer(EXPECTED)

        Dns01Solver(SETTINGS, ["10.0.0.2:5353"]).check(_challenge())

        mock_resolver_cls.assert_called_once_with(configure=False)
        (nameserver,) = resolver.nameservers
        assert nameserver.address == "10.0.0.2"
        assert nameserver.port == 5353

    @patch("acmeissuer.solvers.dns01.dns.resolver.Resolver")
    def test_mismatched_record_is_not_ready(self, mock_resolver_cls):
        resolver = MagicMock()
        mock_resolver_cls.return_value = resolver
        resolver.resolve.return_value = _answer("stale-value")

        assert Dns01Solver(SETTINGS).check(_challenge()) is False

    @pytest.mark.parametrize("exc", [dns.resolver.NXDOMAIN(), dns.resolver.NoAnswer()])
    @patch("acmeissuer.solvers.dns01.dns.resolver.Resolver")
    def test_not_propagated_is_not_an_error(self, mock_resolver_cls, exc):
        resolver = MagicMock()
        mock_resolver_cls.return_value = resolver
        resolver.resolve.side_effect = exc

        assert Dns01Solver(SETTINGS).check(_challenge()) is False

    @pytest.mark.parametrize(
        "exc",
        [dns.resolver.NoNameservers(), dns.exception.Timeout(), dns.exception.DNSException("bad")],
    )
    @patch("acmeissuer.solvers.dns01.dns.resolver.Resolver")
    def test_lookup_failures_raise(self, mock_resolver_cls, exc):
        resolver = MagicMock()
        mock_resolver_cls.return_value = resolver
        resolver.resolve.side_effect = exc

        with pytest.raises(SolverError) as exc_info:
            Dns01Solver(SETTINGS).check(_challenge())
        assert exc_info.value.phase == "check"
        assert exc_info.value.retryable is True
