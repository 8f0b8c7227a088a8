"""Persistence collaborator for the booking layer (Flask-SQLAlchemy session)."""

import logging

from .models.appointment import Appointment, AppointmentStatus
from .models.availability import Availability
from .models.service import Service

logger = logging.getLogger(__name__)


class BookingRepository:
    """Reads and writes used by BookingService.

    Writes only add to the session; committing is the caller's job so that
    a validation and the insert it guards share one transaction.
    """

    def __init__(self, session):
        self.session = session

    def get_service(self, service_id):
        return self.session.get(Service, service_id)

    def get_appointment(self, appointment_id, for_update=False):
        query = Appointment.query.filter_by(id=appointment_id)
        if for_update:
            query = query.with_for_update()
        return query.first()

    def load_availability(self, day_of_week, for_update=False):
        query = Availability.query.filter_by(day_of_week=day_of_week)
        if for_update:
            # Serialises concurrent bookings that land on the same weekday
            query = query.with_for_update()
        return query.first()

    def load_calendar(self):
        return {window.day_of_week: window for window in Availability.query.all()}

    def load_overlapping_appointments(self, range_start, range_end, exclude_appointment_id=None):
        """Non-cancelled appointments intersecting [range_start, range_end)."""
        query = Appointment.query.filter(
            Appointment.status != AppointmentStatus.CANCELLED.value,
            Appointment.start_time < range_end,
            Appointment.end_time > range_start,
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)
        return query.order_by(Appointment.start_time.asc()).all()

    def insert_appointment(self, **fields):
        appointment = Appointment(**fields)
        self.session.add(appointment)
        self.session.flush()
        return appointment.id

    def update_status(self, appointment_id, status, now=None):
        appointment = self.get_appointment(appointment_id, for_update=True)
        if appointment is None:
            return None
        appointment.transition_to(status, now=now)
        return appointment
