"""Slot listing: every candidate start inside a day's window, checked by the validator."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from .validator import Candidate, validate


@dataclass(frozen=True)
class Slot:
    start_time: datetime
    end_time: datetime
    available: bool
    reason: Optional[str] = None

    def to_dict(self):
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "available": self.available,
            "reason": self.reason,
        }


def generate_slots(service, day, window, existing_appointments, now, interval_minutes=15,
                   min_notice=timedelta(0), require_future=True):
    """List candidate starts on ``day`` for ``service``.

    Starts step by ``interval_minutes`` from the window opening; the last
    one is the latest start whose end still fits in the window. A missing
    or closed window gives no slots.
    """
    if window is None or not window.is_available or service is None:
        return []
    if interval_minutes <= 0:
        raise ValueError("interval_minutes must be positive")

    calendar = {day.weekday(): window}
    existing = list(existing_appointments)
    duration = timedelta(minutes=service.duration_minutes)
    opening = datetime.combine(day, window.start_time)
    # offsets stay inside the day, so no arithmetic runs past date.max
    window_minutes = (datetime.combine(day, window.end_time) - opening) / timedelta(minutes=1)

    slots = []
    offset = 0
    while offset + service.duration_minutes <= window_minutes:
        current = opening + timedelta(minutes=offset)
        candidate = Candidate(service_id=service.id, start_time=current, duration_minutes=service.duration_minutes)
        decision = validate(candidate, service, existing, calendar, now=now,
                            min_notice=min_notice, require_future=require_future)
        slots.append(Slot(
            start_time=current,
            end_time=current + duration,
            available=decision.accepted,
            reason=None if decision.accepted else decision.reason.value,
        ))
        offset += interval_minutes
    return slots
