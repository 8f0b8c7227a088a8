"""BookingService and BookingRepository against the test database."""

from datetime import timedelta

import pytest

from agenda.bookings import BookingService
from agenda.errors import BookingRejected, InvalidStatusTransition, NotFoundError, ValidationError
from agenda.models import db
from agenda.models.appointment import Appointment
from agenda.repository import BookingRepository
from agenda.validator import Candidate, RejectionReason

from .conftest import MONDAY, NOW, at

LATER = NOW + timedelta(days=1, hours=4)


@pytest.fixture
def bookings(app):
    return BookingService.from_app(app)


def candidate(service, start, duration=None, **kwargs):
    return Candidate(service_id=service.id, start_time=start,
                     duration_minutes=duration or service.duration_minutes, **kwargs)


def book(bookings, service, start, **kwargs):
    return bookings.book(candidate(service, start), customer_name="Ada", customer_email="ada@example.com", **kwargs)


class TestRepository:
    def test_load_overlapping_skips_cancelled_and_disjoint(self, service, make_appointment):
        kept = make_appointment(service, at(MONDAY, 10))
        make_appointment(service, at(MONDAY, 11), status="cancelled")
        make_appointment(service, at(MONDAY, 12))
        repository = BookingRepository(db.session)
        found = repository.load_overlapping_appointments(at(MONDAY, 9), at(MONDAY, 11, 30))
        assert [a.id for a in found] == [kept.id]

    def test_load_overlapping_is_half_open(self, service, make_appointment):
        make_appointment(service, at(MONDAY, 10))
        repository = BookingRepository(db.session)
        assert repository.load_overlapping_appointments(at(MONDAY, 10, 30), at(MONDAY, 11)) == []

    def test_load_calendar(self, monday_window):
        calendar = BookingRepository(db.session).load_calendar()
        assert list(calendar) == [0]

    def test_update_status_unknown_id(self, app):
        assert BookingRepository(db.session).update_status("missing", "cancelled") is None


class TestBook:
    def test_book_persists_confirmed_appointment(self, bookings, service, monday_window):
        appointment = book(bookings, service, at(MONDAY, 10), customer_phone="+2348000000000")
        stored = db.session.get(Appointment, appointment.id)
        assert stored.status == "confirmed"
        assert stored.end_time == at(MONDAY, 10, 30)
        assert stored.created_at == NOW
        assert stored.customer_phone == "+2348000000000"

    def test_example_schedule(self, bookings, service, monday_window):
        book(bookings, service, at(MONDAY, 10))

        decision = bookings.check(candidate(service, at(MONDAY, 10, 15)))
        assert decision.reason == RejectionReason.TIME_CONFLICT
        assert bookings.check(candidate(service, at(MONDAY, 10, 30))).accepted
        decision = bookings.check(candidate(service, at(MONDAY, 8)))
        assert decision.reason == RejectionReason.OUTSIDE_AVAILABILITY

    def test_book_rejection_raises_and_writes_nothing(self, bookings, service, monday_window):
        book(bookings, service, at(MONDAY, 10))
        with pytest.raises(BookingRejected) as excinfo:
            book(bookings, service, at(MONDAY, 10, 15))
        assert excinfo.value.code == "TimeConflict"
        assert excinfo.value.status_code == 409
        assert Appointment.query.count() == 1

    def test_duration_mismatch(self, bookings, service, monday_window):
        with pytest.raises(BookingRejected) as excinfo:
            bookings.book(candidate(service, at(MONDAY, 10), duration=45),
                          customer_name="Ada", customer_email="ada@example.com")
        assert excinfo.value.rejection.reason == RejectionReason.DURATION_MISMATCH

    def test_no_two_confirmed_appointments_overlap(self, bookings, service, monday_window):
        start = at(MONDAY, 9)
        for offset in range(0, 8 * 60, 10):
            try:
                book(bookings, service, start + timedelta(minutes=offset))
            except BookingRejected:
                pass
        live = Appointment.query.filter_by(status="confirmed").all()
        assert len(live) == 16
        for a in live:
            for b in live:
                if a.id != b.id:
                    assert not (a.start_time < b.end_time and a.end_time > b.start_time)


class TestCancelAndComplete:
    def test_cancel_frees_interval(self, bookings, service, monday_window):
        first = book(bookings, service, at(MONDAY, 10))
        cancelled = bookings.cancel(first.id)
        assert cancelled.status == "cancelled"
        again = book(bookings, service, at(MONDAY, 10))
        assert again.id != first.id
        assert db.session.get(Appointment, first.id) is not None

    def test_cancel_unknown_id(self, bookings):
        with pytest.raises(NotFoundError) as excinfo:
            bookings.cancel("does-not-exist")
        assert excinfo.value.code == "NotFound"

    def test_cancel_is_idempotent(self, bookings, service, monday_window):
        appointment = book(bookings, service, at(MONDAY, 10))
        bookings.cancel(appointment.id)
        assert bookings.cancel(appointment.id).status == "cancelled"

    def test_completed_cannot_be_cancelled(self, bookings, service, monday_window):
        appointment = book(bookings, service, at(MONDAY, 10))
        bookings.complete(appointment.id)
        with pytest.raises(InvalidStatusTransition):
            bookings.cancel(appointment.id)
        assert db.session.get(Appointment, appointment.id).status == "completed"


class TestReschedule:
    def test_reschedule_may_overlap_its_own_slot(self, bookings, service, monday_window):
        appointment = book(bookings, service, at(MONDAY, 10))
        moved = bookings.reschedule(appointment.id, at(MONDAY, 10, 15))
        assert moved.start_time == at(MONDAY, 10, 15)
        assert moved.end_time == at(MONDAY, 10, 45)

    def test_reschedule_into_other_booking_is_rejected(self, bookings, service, monday_window):
        book(bookings, service, at(MONDAY, 10))
        other = book(bookings, service, at(MONDAY, 11))
        with pytest.raises(BookingRejected):
            bookings.reschedule(other.id, at(MONDAY, 10, 15))
        assert db.session.get(Appointment, other.id).start_time == at(MONDAY, 11)

    def test_cancelled_appointment_cannot_be_rescheduled(self, bookings, service, monday_window):
        appointment = book(bookings, service, at(MONDAY, 10))
        bookings.cancel(appointment.id)
        with pytest.raises(ValidationError):
            bookings.reschedule(appointment.id, at(MONDAY, 11))

    def test_reschedule_unknown_id(self, bookings):
        with pytest.raises(NotFoundError):
            bookings.reschedule("missing", at(MONDAY, 11))

    def test_reschedule_refreshes_updated_at_and_applies_details(self, bookings, service, monday_window):
        appointment = book(bookings, service, at(MONDAY, 10))
        later = BookingService(BookingRepository(db.session), clock=lambda: LATER)
        moved = later.reschedule(appointment.id, at(MONDAY, 11), details={"notes": "Moved by phone"})
        stored = db.session.get(Appointment, moved.id)
        assert stored.updated_at == LATER
        assert stored.created_at == NOW
        assert stored.notes == "Moved by phone"

    def test_update_details_refreshes_updated_at(self, bookings, service, monday_window):
        appointment = book(bookings, service, at(MONDAY, 10))
        later = BookingService(BookingRepository(db.session), clock=lambda: LATER)
        later.update_details(appointment.id, {"customer_phone": "+2348022222222"})
        stored = db.session.get(Appointment, appointment.id)
        assert stored.updated_at == LATER
        assert stored.customer_phone == "+2348022222222"

    def test_update_details_unknown_id(self, bookings):
        with pytest.raises(NotFoundError):
            bookings.update_details("missing", {"notes": "x"})
