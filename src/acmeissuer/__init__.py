"""ACME issuance orchestrator for managed certificate resources."""

__version__ = "0.4.0"
