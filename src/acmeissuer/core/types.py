"""Enumerated types shared across the issuer.

All enums inherit from ``StrEnum`` so their ``.value`` is the plain
string used on the wire and in configuration files.
"""

from __future__ import annotations

from enum import StrEnum

# ---------------------------------------------------------------------------
# Challenge types
# ---------------------------------------------------------------------------


class ChallengeType(StrEnum):
    HTTP_01 = "http-01"
    DNS_01 = "dns-01"


# ---------------------------------------------------------------------------
# Per-challenge solving state
# ---------------------------------------------------------------------------


class ChallengeState(StrEnum):
    """Lifecycle of one challenge inside a single issuance pass.

    ``PENDING`` is the only state from which no cleanup is required.
    """

    PENDING = "pending"
    PRESENTED = "presented"
    READY = "ready"
    TIMED_OUT = "timed_out"
    PRESENT_FAILED = "present_failed"
    CHECK_FAILED = "check_failed"
    CANCELLED = "cancelled"
    CLEANED_UP = "cleaned_up"


# ---------------------------------------------------------------------------
# ACME resource status (RFC 8555 §7.1.6)
# ---------------------------------------------------------------------------


class OrderStatus(StrEnum):
    PENDING = "pending"
    READY = "ready"
    PROCESSING = "processing"
    VALID = "valid"
    INVALID = "invalid"


class AuthorizationStatus(StrEnum):
    PENDING = "pending"
    VALID = "valid"
    INVALID = "invalid"
    DEACTIVATED = "deactivated"
    EXPIRED = "expired"
    REVOKED = "revoked"


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


class Severity(StrEnum):
    NORMAL = "Normal"
    WARNING = "Warning"


# ---------------------------------------------------------------------------
# Issuer kinds
# ---------------------------------------------------------------------------


class IssuerKind(StrEnum):
    ISSUER = "Issuer"
    CLUSTER_ISSUER = "ClusterIssuer"
