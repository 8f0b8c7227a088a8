"""
Booking validation.

Decides whether a candidate appointment (service, start time, duration) may
be committed, given the service it books, the weekly availability calendar
and the appointments already on the books. ``validate`` does no I/O and
reads no global state: "now" is passed in by the caller, so it can be
called concurrently and tested without a database.

Checks run in this order, and the first failure wins:

1. the service exists (ServiceNotFound)
2. the service is active (ServiceInactive)
3. the duration equals the service duration (DurationMismatch)
4. the start is not earlier than ``now + min_notice`` (PastStartTime)
5. [start, end) sits inside an open window for that weekday (OutsideAvailability)
6. no non-cancelled appointment intersects [start, end) (TimeConflict)

Intervals are half-open, so an appointment that starts exactly when
another one ends is not a conflict.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Optional, Tuple


class RejectionReason(str, enum.Enum):
    SERVICE_NOT_FOUND = "ServiceNotFound"
    SERVICE_INACTIVE = "ServiceInactive"
    DURATION_MISMATCH = "DurationMismatch"
    OUTSIDE_AVAILABILITY = "OutsideAvailability"
    TIME_CONFLICT = "TimeConflict"
    PAST_START_TIME = "PastStartTime"


@dataclass(frozen=True)
class Candidate:
    service_id: str
    start_time: datetime
    duration_minutes: int
    # set when re-validating an existing appointment (reschedule)
    exclude_appointment_id: Optional[str] = None

    @property
    def end_time(self) -> datetime:
        return self.start_time + timedelta(minutes=self.duration_minutes)


@dataclass(frozen=True)
class Accepted:
    start_time: datetime
    end_time: datetime

    accepted = True


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    message: str
    conflicting_ids: Tuple[str, ...] = ()

    accepted = False


def intervals_overlap(start_a, end_a, start_b, end_b) -> bool:
    """Half-open intersection test for [start_a, end_a) and [start_b, end_b)."""
    return start_a < end_b and end_a > start_b


def within_window(window, start_time: datetime, end_time: datetime) -> bool:
    """True when [start_time, end_time) lies inside the window on start_time's day."""
    if window is None or not window.is_available:
        return False
    if end_time.date() != start_time.date():
        return False
    return window.start_time <= start_time.time() and end_time.time() <= window.end_time


def find_conflicts(start_time, end_time, existing_appointments, exclude_appointment_id=None):
    """Return the ids of non-cancelled appointments intersecting [start_time, end_time)."""
    conflicts = []
    for appointment in existing_appointments:
        if appointment.status == "cancelled":
            continue
        if exclude_appointment_id is not None and appointment.id == exclude_appointment_id:
            continue
        if intervals_overlap(appointment.start_time, appointment.end_time, start_time, end_time):
            conflicts.append(appointment.id)
    return tuple(conflicts)


def validate(
    candidate: Candidate,
    service,
    existing_appointments: Iterable,
    availability_calendar: Mapping[int, object],
    now: datetime,
    min_notice: timedelta = timedelta(0),
    require_future: bool = True,
):
    """Decide whether ``candidate`` can be booked.

    Args:
        candidate: the proposed booking
        service: the Service resolved for ``candidate.service_id`` (None if unknown)
        existing_appointments: appointments that may overlap the candidate
        availability_calendar: mapping of day_of_week (0=Monday) to its window
        now: current naive-UTC time
        min_notice: minimum lead time before the start
        require_future: disable to allow bookings in the past

    Returns:
        Accepted with the computed end_time, or Rejected with a reason.
    """
    if service is None or str(service.id) != str(candidate.service_id):
        return Rejected(RejectionReason.SERVICE_NOT_FOUND, "Service not found")

    if service.status != "active":
        return Rejected(RejectionReason.SERVICE_INACTIVE, f"Service '{service.name}' is not active")

    if candidate.duration_minutes != service.duration_minutes:
        return Rejected(
            RejectionReason.DURATION_MISMATCH,
            f"Duration must be {service.duration_minutes} minutes for '{service.name}', "
            f"got {candidate.duration_minutes}",
        )

    start_time = candidate.start_time
    try:
        end_time = candidate.end_time
    except OverflowError:
        # the end would fall past the last representable day
        return Rejected(RejectionReason.OUTSIDE_AVAILABILITY, "Requested time is outside availability")

    if require_future and start_time < now + min_notice:
        return Rejected(RejectionReason.PAST_START_TIME, "Start time is in the past or inside the notice period")

    window = availability_calendar.get(start_time.weekday())
    if not within_window(window, start_time, end_time):
        return Rejected(RejectionReason.OUTSIDE_AVAILABILITY, "Requested time is outside availability")

    conflicts = find_conflicts(start_time, end_time, existing_appointments, candidate.exclude_appointment_id)
    if conflicts:
        return Rejected(
            RejectionReason.TIME_CONFLICT,
            "Requested time overlaps an existing appointment",
            conflicting_ids=conflicts,
        )

    return Accepted(start_time=start_time, end_time=end_time)
