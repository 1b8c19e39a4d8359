"""DNS-01 challenge solver (RFC 8555 §8.4).

Publishes a TXT record at ``_acme-challenge.{domain}`` holding the
base64url-encoded SHA-256 digest of the key authorization.  Records are
created and removed by operator-supplied scripts::

    create-script <domain> <record-name> <value>
    delete-script <domain> <record-name> <value>

Propagation is checked against the configured recursive nameservers
(``host:port`` entries), or the system resolver when none are set.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

import dns.exception
import dns.nameserver
import dns.resolver

from acmeissuer.core.types import ChallengeType
from acmeissuer.errors import SolverError
from acmeissuer.solvers.base import Solver
from acmeissuer.solvers.callbacks import run_script, script_environment

if TYPE_CHECKING:
    from acmeissuer.config.settings import Dns01SolverSettings
    from acmeissuer.core.context import OperationContext
    from acmeissuer.models.certificate import Certificate
    from acmeissuer.models.order import Challenge

log = logging.getLogger(__name__)

DEFAULT_DNS_PORT = 53


def txt_record_value(key_authorization: str) -> str:
    """Return the TXT value proving *key_authorization* (unpadded base64url)."""
    digest = hashlib.sha256(key_authorization.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")


def record_name(domain: str) -> str:
    """Return the FQDN of the challenge record for *domain*."""
    return f"_acme-challenge.{domain.removeprefix('*.')}"


def _port(entry: str, value: str) -> int:
    if not value:
        return DEFAULT_DNS_PORT
    if not value.isdigit() or not 0 < int(value) < 65536:
        msg = f"invalid nameserver {entry!r}: bad port {value!r}"
        raise ValueError(msg)
    return int(value)


def parse_nameserver(entry: str) -> tuple[str, int]:
    """Split a ``host:port`` entry; the port defaults to 53.

    IPv6 addresses with a port must be bracketed (``[::1]:5353``).

    Raises
    ------
    ValueError
        If the host is empty or the port is not a number in 1-65535.

    """
    entry = entry.strip()
    if entry.startswith("["):
        host, sep, rest = entry[1:].partition("]")
        if not sep or (rest and not rest.startswith(":")):
            msg = f"invalid nameserver {entry!r}"
            raise ValueError(msg)
        port = _port(entry, rest.removeprefix(":")) if rest else DEFAULT_DNS_PORT
    elif entry.count(":") == 1:
        host, port_text = entry.split(":")
        port = _port(entry, port_text)
    else:
        host, port = entry, DEFAULT_DNS_PORT
    if not host:
        msg = f"invalid nameserver {entry!r}: empty host"
        raise ValueError(msg)
    return host, port


class Dns01Solver(Solver):
    """Solve DNS-01 challenges through record provisioning scripts.

    Parameters
    ----------
    settings:
        Script paths and timeouts.
    nameservers:
        Recursive nameservers used for the propagation check.
    ambient_credentials:
        Whether the scripts may see the process environment, and with
        it any ambient cloud credentials.

    """

    challenge_type = ChallengeType.DNS_01

    def __init__(
        self,
        settings: Dns01SolverSettings,
        nameservers: Sequence[str] = (),
        *,
        ambient_credentials: bool = False,
    ) -> None:
        self._settings = settings
        self._nameservers = tuple(parse_nameserver(ns) for ns in nameservers)
        self._ambient = ambient_credentials

    @property
    def ambient_credentials(self) -> bool:
        return self._ambient

    @property
    def nameservers(self) -> tuple[tuple[str, int], ...]:
        return self._nameservers

    def _environment(self, crt: Certificate, ch: Challenge) -> dict[str, str]:
        cfg = crt.solver_config_for(ch.domain if not ch.wildcard else f"*.{ch.domain}")
        provider = cfg.dns01.provider if cfg is not None and cfg.dns01 is not None else ""
        return script_environment(
            ambient=self._ambient,
            extra={
                "ACMEISSUER_CERTIFICATE": crt.ref,
                "ACMEISSUER_DNS01_PROVIDER": provider,
            },
        )

    def present(self, ctx: OperationContext, crt: Certificate, ch: Challenge) -> None:
        if not self._settings.create_script:
            msg = "dns-01 solver has no createScript configured"
            raise SolverError(msg, phase="present", retryable=False)

        name = record_name(ch.domain)
        value = txt_record_value(ch.key_authorization)
        log.info("Presenting DNS-01 record %s for %s", name, crt.ref)
        run_script(
            ctx,
            [self._settings.create_script, ch.domain, name, value],
            phase="present",
            timeout=self._settings.script_timeout_seconds,
            env=self._environment(crt, ch),
        )

    def check(self, ch: Challenge) -> bool:
        name = record_name(ch.domain)
        expected = txt_record_value(ch.key_authorization)

        resolver = self._resolver()
        try:
            answer = resolver.resolve(name, "TXT")
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            log.debug("DNS-01 record %s not visible yet", name)
            return False
        except dns.resolver.NoNameservers as exc:
            msg = f"no nameservers answered for {name} (SERVFAIL or all refused)"
            raise SolverError(msg, phase="check") from exc
        except dns.exception.Timeout as exc:
            msg = f"DNS query for {name} timed out"
            raise SolverError(msg, phase="check") from exc
        except dns.exception.DNSException as exc:
            msg = f"DNS error querying {name}: {exc}"
            raise SolverError(msg, phase="check") from exc

        for rdata in answer:
            value = b"".join(rdata.strings).decode("ascii", errors="replace")
            if value == expected:
                log.debug("DNS-01 record %s propagated", name)
                return True

        log.debug("DNS-01 record %s present but does not carry the expected value", name)
        return False

    def cleanup(self, ctx: OperationContext, crt: Certificate, ch: Challenge) -> None:
        if not self._settings.delete_script:
            log.warning("dns-01 solver has no deleteScript configured, leaving record in place")
            return

        name = record_name(ch.domain)
        value = txt_record_value(ch.key_authorization)
        log.info("Removing DNS-01 record %s for %s", name, crt.ref)
        run_script(
            ctx,
            [self._settings.delete_script, ch.domain, name, value],
            phase="cleanup",
            timeout=self._settings.script_timeout_seconds,
            env=self._environment(crt, ch),
        )

    def _resolver(self) -> dns.resolver.Resolver:
        if self._nameservers:
            resolver = dns.resolver.Resolver(configure=False)
            resolver.nameservers = [
                dns.nameserver.Do53Nameserver(host, port) for host, port in self._nameservers
            ]
        else:
            resolver = dns.resolver.Resolver()
        resolver.lifetime = self._settings.query_timeout_seconds
        return resolver
