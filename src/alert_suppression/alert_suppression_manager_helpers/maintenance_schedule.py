"""Occurrence expansion for recurring maintenance windows."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, time, timezone
from typing import Iterator, List, Optional

from dateutil.relativedelta import relativedelta

from .models import MaintenanceWindow, RecurrenceSpec, RecurrenceType

logger = logging.getLogger(__name__)


def _offset(recurrence: RecurrenceSpec, occurrence: int) -> relativedelta:
    steps = recurrence.interval * occurrence
    match recurrence.recurrence_type:
        case RecurrenceType.DAILY:
            return relativedelta(days=steps)
        case RecurrenceType.WEEKLY:
            return relativedelta(weeks=steps)
        case RecurrenceType.MONTHLY:
            return relativedelta(months=steps)


def _end_boundary(recurrence: RecurrenceSpec) -> Optional[datetime]:
    if recurrence.end_date is None:
        return None
    return datetime.combine(recurrence.end_date, time.max, tzinfo=timezone.utc)


def iter_occurrences(window: MaintenanceWindow) -> Iterator[MaintenanceWindow]:
    """
    Yield the window itself followed by each recurrence.

    Occurrences keep the original duration and stop at ``max_occurrences`` or
    once an occurrence would start after the recurrence end date.
    """
    yield window
    recurrence = window.recurrence
    if not window.recurring or recurrence is None:
        return

    boundary = _end_boundary(recurrence)
    duration = window.duration
    for occurrence in range(1, max(1, recurrence.max_occurrences)):
        start = window.start_time + _offset(recurrence, occurrence)
        if boundary is not None and start > boundary:
            break
        yield replace(
            window,
            name=f"{window.name} ({occurrence + 1})",
            start_time=start,
            end_time=start + duration,
            recurring=False,
            recurrence=None,
        )


def active_occurrence(window: MaintenanceWindow, at: datetime) -> Optional[MaintenanceWindow]:
    """Return the occurrence of ``window`` that contains ``at``, if any."""
    if not window.enabled:
        return None
    for occurrence in iter_occurrences(window):
        if occurrence.start_time > at:
            return None
        if occurrence.contains(at):
            return occurrence
    return None


def is_upcoming(window: MaintenanceWindow, at: datetime) -> bool:
    """True while any occurrence of the window has not yet ended."""
    if not window.enabled:
        return False
    return any(occurrence.end_time >= at for occurrence in iter_occurrences(window))


def active_windows(windows: List[MaintenanceWindow], at: datetime) -> List[MaintenanceWindow]:
    """Resolve every enabled window to the occurrence active at ``at``."""
    resolved: List[MaintenanceWindow] = []
    for window in windows:
        occurrence = active_occurrence(window, at)
        if occurrence is not None:
            resolved.append(occurrence)
    logger.debug("%d of %d maintenance windows active at %s", len(resolved), len(windows), at.isoformat())
    return resolved


__all__ = ["active_occurrence", "active_windows", "is_upcoming", "iter_occurrences"]
