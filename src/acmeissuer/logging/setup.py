"""Structured logging configuration for acmeissuer.

Provides JSON and text formatters, a context filter that injects the
current certificate and issuer into every log record, and a one-call
``configure_logging`` function driven by config settings.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from acmeissuer.logging.context import current_certificate, current_issuer

if TYPE_CHECKING:
    from acmeissuer.config.settings import LoggingSettings

# Attributes that are part of the standard LogRecord; everything
# else is considered "extra" and gets included in structured output.
_STANDARD_ATTRS = frozenset(
    {
        "args",
        "created",
        "exc_info",
        "exc_text",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "message",
        "module",
        "msecs",
        "msg",
        "name",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "taskName",
        "thread",
        "threadName",
        # Our own well-known context attributes (handled explicitly):
        "certificate",
        "issuer",
    }
)


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


class StructuredFormatter(logging.Formatter):
    """JSON-lines formatter for production logging.

    Every record becomes a single JSON object on one line containing
    the standard fields plus any *extra* attributes passed by the
    caller or injected by filters.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()

        data: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created,
                tz=UTC,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.message,
        }

        certificate = getattr(record, "certificate", "-")
        if certificate != "-":
            data["certificate"] = certificate

        issuer = getattr(record, "issuer", "-")
        if issuer != "-":
            data["issuer"] = issuer

        # Caller-supplied extra fields
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and not key.startswith("_"):
                data.setdefault(key, value)

        if record.exc_info and record.exc_info[0] is not None:
            data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for console use."""

    _FMT = "%(asctime)s %(levelname)-8s [%(issuer)s %(certificate)s] %(name)s — %(message)s"

    def __init__(self) -> None:
        super().__init__(fmt=self._FMT, datefmt="%Y-%m-%d %H:%M:%S")


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------


class IssuanceContextFilter(logging.Filter):
    """Inject the current issuance scope into every log record.

    Adds ``certificate`` and ``issuer`` from
    :func:`acmeissuer.logging.issuance_scope`, falling back to ``"-"``
    outside a scope.
    """

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "certificate"):
            record.certificate = current_certificate()  # type: ignore[attr-defined]
        if not hasattr(record, "issuer"):
            record.issuer = current_issuer()  # type: ignore[attr-defined]
        return True


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def configure_logging(settings: LoggingSettings) -> logging.Logger:
    """Configure the ``acmeissuer`` logger hierarchy from settings.

    Replaces any bootstrap handlers with properly formatted output and
    returns the root ``acmeissuer`` logger.
    """
    level = getattr(logging, settings.level.upper(), logging.INFO)

    root = logging.getLogger("acmeissuer")
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    formatter: logging.Formatter
    formatter = StructuredFormatter() if settings.format == "json" else TextFormatter()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(formatter)
    console.addFilter(IssuanceContextFilter())
    root.addHandler(console)

    # Events are always emitted, even when the root level is WARNING.
    logging.getLogger("acmeissuer.events").setLevel(logging.INFO)

    # ── Quieten noisy third-party loggers ───────────────────────────
    for lib in ("acme.client", "urllib3", "requests"):
        logging.getLogger(lib).setLevel(logging.WARNING)

    return root
