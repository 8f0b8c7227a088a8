"""
Booking operations built on the validator.

BookingService loads what the validator needs through the repository,
asks for a decision and, when the candidate is accepted, writes the
appointment in the same transaction. The availability row of the
candidate's weekday is locked first, so two bookings for the same day
cannot both pass the overlap check before either commits.
"""

import logging
from datetime import timedelta

from flask import current_app

from .errors import BookingRejected, NotFoundError, ValidationError
from .models import db
from .models.appointment import AppointmentStatus
from .repository import BookingRepository
from .timeutils import day_bounds
from .validator import Candidate, validate

logger = logging.getLogger(__name__)


class BookingService:
    def __init__(self, repository, clock, min_notice=timedelta(0), require_future=True):
        self.repository = repository
        self.clock = clock
        self.min_notice = min_notice
        self.require_future = require_future

    @classmethod
    def from_app(cls, app=None):
        """Build a service wired to the app's session, clock and booking policy."""
        app = app or current_app
        return cls(
            BookingRepository(db.session),
            clock=app.config["CLOCK"],
            min_notice=timedelta(minutes=app.config["BOOKING_MIN_NOTICE_MINUTES"]),
            require_future=app.config["BOOKING_REQUIRE_FUTURE"],
        )

    def check(self, candidate, lock=False):
        """Run the validator for ``candidate`` against current storage."""
        service = self.repository.get_service(candidate.service_id)
        weekday = candidate.start_time.weekday()
        window = self.repository.load_availability(weekday, for_update=lock)
        calendar = {weekday: window} if window is not None else {}
        range_start, range_end = day_bounds(candidate.start_time.date())
        existing = self.repository.load_overlapping_appointments(
            range_start, range_end, exclude_appointment_id=candidate.exclude_appointment_id
        )
        return validate(
            candidate,
            service,
            existing,
            calendar,
            now=self.clock(),
            min_notice=self.min_notice,
            require_future=self.require_future,
        )

    def book(self, candidate, customer_name, customer_email, customer_phone=None, notes=None):
        session = self.repository.session
        decision = self.check(candidate, lock=True)
        if not decision.accepted:
            session.rollback()
            logger.info(
                "Booking rejected for service %s at %s: %s",
                candidate.service_id,
                candidate.start_time.isoformat(),
                decision.reason.value,
            )
            raise BookingRejected(decision)

        now = self.clock()
        appointment_id = self.repository.insert_appointment(
            service_id=candidate.service_id,
            customer_name=customer_name,
            customer_email=customer_email,
            customer_phone=customer_phone,
            start_time=decision.start_time,
            end_time=decision.end_time,
            status=AppointmentStatus.CONFIRMED.value,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        session.commit()
        logger.info(
            "Appointment %s booked for %s-%s", appointment_id, decision.start_time.isoformat(), decision.end_time.isoformat()
        )
        return self.repository.get_appointment(appointment_id)

    def reschedule(self, appointment_id, start_time, details=None):
        """Move a confirmed appointment to ``start_time``, keeping its service duration.

        ``details`` (contact fields, notes) are written in the same commit.
        """
        session = self.repository.session
        appointment = self._get_or_raise(appointment_id, for_update=True)
        if appointment.status != AppointmentStatus.CONFIRMED.value:
            session.rollback()
            raise ValidationError(
                f"Only confirmed appointments can be rescheduled (status is '{appointment.status}')",
                code="AppointmentNotReschedulable",
            )

        service = appointment.service
        candidate = Candidate(
            service_id=appointment.service_id,
            start_time=start_time,
            duration_minutes=service.duration_minutes if service else 0,
            exclude_appointment_id=appointment.id,
        )
        decision = self.check(candidate, lock=True)
        if not decision.accepted:
            session.rollback()
            logger.info("Reschedule of %s rejected: %s", appointment_id, decision.reason.value)
            raise BookingRejected(decision)

        appointment.start_time = decision.start_time
        appointment.end_time = decision.end_time
        for field, value in (details or {}).items():
            setattr(appointment, field, value)
        appointment.touch(self.clock())
        session.commit()
        logger.info("Appointment %s rescheduled to %s", appointment_id, decision.start_time.isoformat())
        return appointment

    def update_details(self, appointment_id, details):
        appointment = self._get_or_raise(appointment_id, for_update=True)
        if details:
            for field, value in details.items():
                setattr(appointment, field, value)
            appointment.touch(self.clock())
            self.repository.session.commit()
            logger.info("Appointment %s details updated", appointment_id)
        return appointment

    def cancel(self, appointment_id):
        """Mark the appointment cancelled. The row is kept and its interval freed."""
        return self._set_status(appointment_id, AppointmentStatus.CANCELLED.value)

    def complete(self, appointment_id):
        return self._set_status(appointment_id, AppointmentStatus.COMPLETED.value)

    def _set_status(self, appointment_id, status):
        session = self.repository.session
        try:
            appointment = self.repository.update_status(appointment_id, status, now=self.clock())
        except Exception:
            session.rollback()
            raise
        if appointment is None:
            session.rollback()
            raise NotFoundError(f"Appointment {appointment_id} not found")
        session.commit()
        logger.info("Appointment %s is now %s", appointment_id, appointment.status)
        return appointment

    def _get_or_raise(self, appointment_id, for_update=False):
        appointment = self.repository.get_appointment(appointment_id, for_update=for_update)
        if appointment is None:
            self.repository.session.rollback()
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment
