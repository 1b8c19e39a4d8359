"""Notification sink for events attached to a certificate.

The reconciler platform surfaces these to operators.  The issuer only
emits them; it never reads them back.
"""

from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from acmeissuer.core.types import Severity

if TYPE_CHECKING:
    from acmeissuer.models.certificate import Certificate

REASON_CREATE_ORDER_FAILED = "ErrCreateOrder"

log = logging.getLogger("acmeissuer.events")


@dataclass(frozen=True)
class Event:
    subject: str
    severity: Severity
    reason: str
    message: str
    timestamp: datetime


class EventRecorder(abc.ABC):
    """Receives events about certificates."""

    @abc.abstractmethod
    def emit(
        self,
        subject: Certificate,
        severity: Severity,
        reason: str,
        message: str,
    ) -> None:
        """Record one event about *subject*."""


class LoggingEventRecorder(EventRecorder):
    """Write events as structured records to the ``acmeissuer.events`` logger.

    The most recent events are also kept in memory (bounded by
    *history*) for diagnostics.
    """

    def __init__(self, history: int = 100) -> None:
        self._history = history
        self._events: list[Event] = []

    @property
    def events(self) -> list[Event]:
        return list(self._events)

    def emit(
        self,
        subject: Certificate,
        severity: Severity,
        reason: str,
        message: str,
    ) -> None:
        event = Event(
            subject=subject.ref,
            severity=severity,
            reason=reason,
            message=message,
            timestamp=datetime.now(UTC),
        )
        self._events.append(event)
        if len(self._events) > self._history:
            del self._events[: len(self._events) - self._history]

        level = logging.WARNING if severity == Severity.WARNING else logging.INFO
        log.log(
            level,
            "%s %s: %s",
            event.subject,
            reason,
            message,
            extra={
                "event_subject": event.subject,
                "event_reason": reason,
                "event_severity": str(severity),
            },
        )
