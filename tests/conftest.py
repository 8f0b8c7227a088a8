"""Shared fixtures: an app over in-memory SQLite with the clock pinned."""

from datetime import date, datetime, time, timedelta

import pytest

from agenda.config import TestingConfig
from agenda.main import create_app
from agenda.models import db
from agenda.models.appointment import Appointment, AppointmentStatus
from agenda.models.availability import Availability
from agenda.models.service import Service, ServiceStatus

# Tuesday; MONDAY below is the following Monday
NOW = datetime(2030, 1, 1, 8, 0)
MONDAY = date(2030, 1, 7)


def at(day, hour, minute=0):
    return datetime.combine(day, time(hour, minute))


@pytest.fixture
def app():
    app = create_app(TestingConfig, CLOCK=lambda: NOW)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def service(app):
    service = Service(name="Haircut", duration_minutes=30, price=500000, currency="NGN",
                      status=ServiceStatus.ACTIVE.value)
    db.session.add(service)
    db.session.commit()
    return service


@pytest.fixture
def monday_window(app):
    window = Availability(day_of_week=0, start_time=time(9, 0), end_time=time(17, 0), is_available=True)
    db.session.add(window)
    db.session.commit()
    return window


@pytest.fixture
def make_appointment(app):
    def _make(service, start_time, status=AppointmentStatus.CONFIRMED.value, **fields):
        appointment = Appointment(
            service_id=service.id,
            customer_name=fields.pop("customer_name", "Ada"),
            customer_email=fields.pop("customer_email", "ada@example.com"),
            start_time=start_time,
            end_time=start_time + timedelta(minutes=service.duration_minutes),
            status=status,
            created_at=NOW,
            updated_at=NOW,
            **fields,
        )
        db.session.add(appointment)
        db.session.commit()
        return appointment

    return _make
