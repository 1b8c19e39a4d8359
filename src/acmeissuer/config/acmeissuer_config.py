"""acmeissuer configuration loader.

Lifecycle::

    # The CLI loads the file once at startup
    config = AcmeissuerConfig(config_file="/etc/acmeissuer/config.yaml")

    # and passes the typed tree to the composition root
    issuer = build_issuer(config.settings)

    # Dynamic access for extension code
    config.get("solvers.http01.webroot", default="/srv/www")

String values of the form ``${VAR}`` or ``${VAR:-default}`` are
replaced by environment variables before validation.
"""

from __future__ import annotations

import functools
import json
import logging
import os
import re
from pathlib import Path
from typing import Any

import jsonschema
import yaml

from acmeissuer.config.settings import AcmeissuerSettings, build_settings
from acmeissuer.core.types import IssuerKind
from acmeissuer.solvers.dns01 import parse_nameserver

_SCHEMA_PATH = Path(__file__).parent / "schema.json"

_ENV_RE = re.compile(
    r"^\$\{([^}:]+?)(?::-(.*))?\}$",
    re.DOTALL,
)

_KNOWN_HTTP01_RESPONDERS = frozenset({"webroot", "callback"})
_KNOWN_LOG_FORMATS = frozenset({"text", "json"})

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Validation error collector
# ---------------------------------------------------------------------------


class ConfigValidationError(Exception):
    """Raised when validation finds one or more problems."""

    def __init__(self, errors: list[str]) -> None:
        """Store *errors* and build a human-readable message."""
        self.errors = errors
        body = "\n".join(f"  - {e}" for e in errors)
        super().__init__(f"Configuration validation failed:\n{body}")


# ---------------------------------------------------------------------------
# Environment variable resolution
# ---------------------------------------------------------------------------


def _resolve_value(value: str, path: str) -> str:
    """Replace ``${VAR}`` or ``${VAR:-default}`` with env var value."""
    match = _ENV_RE.match(value)
    if match is None:
        return value
    var_name = match.group(1)
    fallback = match.group(2)
    resolved = os.environ.get(var_name)
    if resolved is not None:
        return resolved
    if fallback is not None:
        return fallback
    raise ConfigValidationError(
        [
            f"Environment variable '${{{var_name}}}' referenced "
            f"at '{path}' is not set and has no default",
        ],
    )


def _resolve_env_vars(
    data: Any,  # noqa: ANN401
    path: str = "",
) -> None:
    """Walk *data* in-place and resolve ``${VAR}``/``${VAR:-default}`` strings."""
    if isinstance(data, dict):
        for key in data:
            child_path = f"{path}.{key}" if path else key
            if isinstance(data[key], str):
                data[key] = _resolve_value(data[key], child_path)
            elif isinstance(data[key], (dict, list)):
                _resolve_env_vars(data[key], child_path)
    elif isinstance(data, list):
        for idx, item in enumerate(data):
            child_path = f"{path}[{idx}]"
            if isinstance(item, str):
                data[idx] = _resolve_value(item, child_path)
            elif isinstance(item, (dict, list)):
                _resolve_env_vars(item, child_path)


def _read_file(config_file: Path) -> dict[str, Any]:
    with open(config_file, encoding="utf-8") as f:  # noqa: PTH123
        if config_file.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        msg = f"top level of {config_file} must be a mapping"
        raise ConfigValidationError([msg])
    return data


# ---------------------------------------------------------------------------
# Schema validation
# ---------------------------------------------------------------------------


@functools.cache
def _schema_validator() -> jsonschema.Draft202012Validator:
    schema = json.loads(_SCHEMA_PATH.read_text(encoding="utf-8"))
    jsonschema.Draft202012Validator.check_schema(schema)
    return jsonschema.Draft202012Validator(schema)


def _error_path(error: jsonschema.ValidationError) -> str:
    path = ""
    for part in error.absolute_path:
        if isinstance(part, int):
            path = f"{path}[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "<root>"


def _validate_schema(data: dict[str, Any]) -> None:
    """Check value types against the bundled schema, collecting every error."""
    errors = sorted(
        _schema_validator().iter_errors(data),
        key=lambda e: [str(p) for p in e.absolute_path],
    )
    if errors:
        raise ConfigValidationError([f"{_error_path(e)}: {e.message}" for e in errors])


# ---------------------------------------------------------------------------
# Config class
# ---------------------------------------------------------------------------


class AcmeissuerConfig:
    """Loaded and validated configuration file.

    After construction the typed settings tree is available at
    :pyattr:`settings` and the raw dict via :pyattr:`data` /
    :pymeth:`get`.
    """

    def __init__(
        self,
        *,
        config_file: str | Path | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        if config_file is not None:
            self._source = str(config_file)
            self._data = _read_file(Path(config_file))
        else:
            self._source = "<inline>"
            self._data = dict(data or {})

        _resolve_env_vars(self._data)
        _validate_schema(self._data)
        self.additional_checks()
        self._settings: AcmeissuerSettings = build_settings(self._data)

    @classmethod
    def load(cls, config_file: str | Path) -> AcmeissuerSettings:
        """Read, validate and return the settings tree of *config_file*."""
        return cls(config_file=config_file).settings

    # -- typed access -------------------------------------------------------

    @property
    def settings(self) -> AcmeissuerSettings:
        """Fully-typed, frozen settings tree."""
        return self._settings

    @property
    def data(self) -> dict[str, Any]:
        return self._data

    def get(self, dotted: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return the raw value at a dot-separated path, or *default*."""
        node: Any = self._data
        for part in dotted.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    # -- cross-field validation ---------------------------------------------

    def additional_checks(self) -> None:  # noqa: C901, PLR0912
        """Semantic & cross-field validation.

        Structural completeness of the ``issuer.acme`` block is checked
        later by :func:`acmeissuer.issuer.validation.validate_issuer_config`
        so that the same rules apply to issuers built in code.
        """
        errors: list[str] = []
        warnings: list[str] = []

        issuer = self._data.get("issuer")
        if not isinstance(issuer, dict):
            errors.append("issuer section is required")
            issuer = {}
        challenges = self._data.get("challenges") or {}
        solvers = self._data.get("solvers") or {}
        http01 = solvers.get("http01") or {}
        dns01 = solvers.get("dns01") or {}
        logging_cfg = self._data.get("logging") or {}

        # -- issuer --
        kind = issuer.get("kind", IssuerKind.ISSUER)
        if kind not in tuple(IssuerKind):
            errors.append(
                f"issuer.kind must be one of {sorted(k.value for k in IssuerKind)} "
                f"(got '{kind}')",
            )
        if not issuer.get("name"):
            errors.append("issuer.name is required")
        acme = issuer.get("acme") or {}
        server = acme.get("server", "")
        if server and not server.startswith(("https://", "http://")):
            errors.append(
                f"issuer.acme.server must be an http(s) URL (got '{server}')",
            )
        if acme.get("skipTLSVerify"):
            warnings.append(
                "issuer.acme.skipTLSVerify is true; the ACME server "
                "certificate will not be verified",
            )
        if not issuer.get("namespace") and not self._data.get("clusterResourceNamespace"):
            warnings.append(
                "neither issuer.namespace nor clusterResourceNamespace is set; "
                "the issuer will refuse to start",
            )

        # -- nameservers --
        nameservers = self._data.get("dns01Nameservers") or []
        for entry in nameservers:
            try:
                parse_nameserver(entry)
            except ValueError as exc:
                errors.append(f"dns01Nameservers: {exc}")

        # -- challenge polling --
        interval = challenges.get("pollIntervalSeconds", 5)
        timeout = challenges.get("timeoutSeconds", 300)
        grace = challenges.get("cleanupGraceSeconds", 10)
        if interval <= 0:
            errors.append(
                f"challenges.pollIntervalSeconds ({interval}) must be > 0",
            )
        if timeout <= 0:
            errors.append(f"challenges.timeoutSeconds ({timeout}) must be > 0")
        if grace < 0:
            errors.append(f"challenges.cleanupGraceSeconds ({grace}) must be >= 0")
        if 0 < timeout < interval:
            errors.append(
                f"challenges.pollIntervalSeconds ({interval}) must be <= "
                f"challenges.timeoutSeconds ({timeout})",
            )

        # -- HTTP-01 --
        responder = http01.get("responder", "webroot")
        if responder not in _KNOWN_HTTP01_RESPONDERS:
            errors.append(
                f"solvers.http01.responder must be one of "
                f"{sorted(_KNOWN_HTTP01_RESPONDERS)} (got '{responder}')",
            )
        elif responder == "webroot" and http01 and not http01.get("webroot"):
            errors.append(
                "solvers.http01.webroot is required when solvers.http01.responder is 'webroot'",
            )
        elif responder == "callback":
            if not http01.get("deployScript"):
                errors.append(
                    "solvers.http01.deployScript is required when "
                    "solvers.http01.responder is 'callback'",
                )
            if not http01.get("cleanupScript"):
                errors.append(
                    "solvers.http01.cleanupScript is required when "
                    "solvers.http01.responder is 'callback'",
                )

        # -- DNS-01 --
        if dns01:
            if not dns01.get("createScript"):
                errors.append("solvers.dns01.createScript is required when dns01 is configured")
            if not dns01.get("deleteScript"):
                errors.append("solvers.dns01.deleteScript is required when dns01 is configured")

        # -- transport --
        transport = self._data.get("transport") or {}
        for key in (
            "dialTimeoutSeconds",
            "tlsHandshakeTimeoutSeconds",
            "requestTimeoutSeconds",
            "idleConnectionTimeoutSeconds",
        ):
            value = transport.get(key)
            if value is not None and value <= 0:
                errors.append(f"transport.{key} ({value}) must be > 0")
        dial = transport.get("dialTimeoutSeconds", 5)
        request = transport.get("requestTimeoutSeconds", 30)
        if dial > request:
            warnings.append(
                f"transport.dialTimeoutSeconds ({dial}) exceeds "
                f"transport.requestTimeoutSeconds ({request})",
            )

        # -- logging --
        fmt = logging_cfg.get("format", "text")
        if fmt not in _KNOWN_LOG_FORMATS:
            errors.append(
                f"logging.format must be one of {sorted(_KNOWN_LOG_FORMATS)} (got '{fmt}')",
            )

        for w in warnings:
            log.warning("Config warning: %s", w)

        if errors:
            raise ConfigValidationError(errors)

    def __repr__(self) -> str:
        """Return a developer-friendly representation."""
        return f"<AcmeissuerConfig config_file={self._source}>"
