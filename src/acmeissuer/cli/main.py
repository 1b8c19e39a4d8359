"""acmeissuer command-line entry point.

Usage::

    acmeissuer -c /etc/acmeissuer/config.yaml --validate-only
    acmeissuer -c config.yaml issue --name web --namespace default \\
        --domain example.com --domain www.example.com
    acmeissuer -c config.yaml issue --name wild --domain '*.example.com' \\
        --challenge-type dns-01
    python -m acmeissuer -c config.yaml issue ...

Exit status is 0 on success, 1 for errors a later run may clear up and
2 for errors that need the configuration or credentials fixed.
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path

log = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RETRYABLE = 1
EXIT_FATAL = 2


def _get_version() -> str:
    from acmeissuer import __version__

    return __version__


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="acmeissuer",
        description="acmeissuer: ACME certificate issuance orchestrator",
    )
    parser.add_argument(
        "-c",
        "--config",
        required=True,
        metavar="PATH",
        help="Path to the configuration file (YAML or JSON).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable debug output (full tracebacks, verbose logging).",
    )
    parser.add_argument(
        "--validate-only",
        action="store_true",
        default=False,
        help="Validate the configuration file and exit.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # issue
    issue = subparsers.add_parser("issue", help="Create an order and solve its challenges")
    issue.add_argument("--name", required=True, help="Certificate name")
    issue.add_argument("--namespace", default="", help="Certificate namespace")
    issue.add_argument(
        "--domain",
        action="append",
        required=True,
        dest="domains",
        metavar="DOMAIN",
        help="Domain to include (repeatable; the first is the common name)",
    )
    issue.add_argument(
        "--challenge-type",
        default="http-01",
        help="Challenge type to solve for every domain (default: http-01)",
    )
    issue.add_argument(
        "--timeout",
        type=float,
        default=None,
        metavar="SECONDS",
        help="Give up (and clean up) after this many seconds",
    )

    return parser


def _print_error(message: str) -> None:
    """Print a user-facing error to stderr."""
    print(f"acmeissuer: error: {message}", file=sys.stderr)  # noqa: T201


def main(argv: list[str] | None = None) -> None:
    """CLI entry point.  Parses arguments, loads config, runs the command."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    # -- resolve config path ---
    config_path = Path(args.config)
    if not config_path.is_file():
        _print_error(f"configuration file not found: {config_path}")
        sys.exit(EXIT_FATAL)

    # -- bootstrap logging early (basic stderr until config is loaded) ---
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    # -- load & validate config ---
    try:
        from acmeissuer.config import AcmeissuerConfig, ConfigValidationError

        config = AcmeissuerConfig(config_file=str(config_path))
    except ConfigValidationError as exc:
        _print_error(str(exc))
        sys.exit(EXIT_FATAL)
    except Exception as exc:
        if args.debug:
            raise
        _print_error(f"failed to load configuration: {exc}")
        sys.exit(EXIT_FATAL)

    # -- replace bootstrap logging with structured logging ---
    from acmeissuer.logging import configure_logging

    configure_logging(config.settings.logging)

    if args.validate_only:
        from acmeissuer.errors import ConfigError
        from acmeissuer.issuer import build_issuer

        try:
            build_issuer(config.settings)
        except ConfigError as exc:
            _print_error(exc.detail)
            sys.exit(EXIT_FATAL)
        _print_settings_summary(config)
        sys.exit(EXIT_OK)

    if args.command == "issue":
        sys.exit(_run_issue(config, args))

    parser.print_help(sys.stderr)
    sys.exit(EXIT_FATAL)


def _run_issue(config, args) -> int:
    """Build the issuer and run one issuance pass for the given domains."""
    from acmeissuer.core.context import OperationContext
    from acmeissuer.errors import IssuerError
    from acmeissuer.issuer import build_issuer
    from acmeissuer.models.certificate import Certificate

    certificate = Certificate(
        name=args.name,
        namespace=args.namespace,
        common_name=args.domains[0],
        dns_names=tuple(args.domains),
        default_challenge_type=args.challenge_type,
    )
    if args.timeout is not None:
        ctx = OperationContext.with_timeout(args.timeout)
    else:
        ctx = OperationContext.background()
    previous = signal.signal(signal.SIGTERM, lambda *_: ctx.cancel("terminated"))

    try:
        issuer = build_issuer(config.settings)
        order = issuer.obtain(ctx, certificate)
    except IssuerError as exc:
        if args.debug:
            log.exception("Issuance failed")
        _print_error(exc.detail)
        return EXIT_FATAL if exc.fatal else EXIT_RETRYABLE
    finally:
        signal.signal(signal.SIGTERM, previous)

    print(order.url)  # noqa: T201
    return EXIT_OK


def _print_settings_summary(config) -> None:
    """Print a short summary of the loaded configuration."""
    s = config.settings
    acme = s.issuer.acme
    lines = [
        f"issuer:       {s.issuer.kind} {s.issuer.name}",
        f"server:       {acme.server if acme else '-'}",
        f"account:      {acme.email if acme else '-'}",
        f"nameservers:  {', '.join(s.dns01_nameservers) or 'system'}",
        f"http-01:      {s.solvers.http01.responder}",
        f"poll:         every {s.challenges.interval_seconds:g}s "
        f"for up to {s.challenges.timeout_seconds:g}s",
    ]
    print("\n".join(lines))  # noqa: T201
