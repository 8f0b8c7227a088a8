import logging

from flask import Blueprint, jsonify, request

from . import date_arg, datetime_field, get_json_body, int_field, require_fields
from ..bookings import BookingService
from ..repository import BookingRepository
from ..errors import NotFoundError, ValidationError
from ..models import db
from ..models.appointment import Appointment, AppointmentStatus
from ..timeutils import day_bounds
from ..validator import Candidate

logger = logging.getLogger(__name__)

appointments_bp = Blueprint("appointments", __name__)

CONTACT_FIELDS = ("customer_name", "customer_email", "customer_phone", "notes")


def _candidate_from(data):
    """Build a Candidate from a request body; duration defaults to the service's."""
    require_fields(data, "service_id", "start_time")
    start_time = datetime_field(data, "start_time")
    duration = int_field(data, "duration_minutes", minimum=1, required=False)
    if duration is None:
        service = BookingRepository(db.session).get_service(data["service_id"])
        duration = service.duration_minutes if service is not None else 0
    return Candidate(service_id=str(data["service_id"]), start_time=start_time, duration_minutes=duration)


def _validate_email(value):
    if not isinstance(value, str) or "@" not in value:
        raise ValidationError("'customer_email' must be a valid email address")
    return value


@appointments_bp.route("/appointments", methods=["GET"])
def list_appointments():
    query = Appointment.query
    day = date_arg("date")
    if day is not None:
        start, end = day_bounds(day)
        query = query.filter(Appointment.start_time >= start, Appointment.start_time < end)
    status = request.args.get("status")
    if status:
        if status not in {s.value for s in AppointmentStatus}:
            raise ValidationError(f"Unknown status '{status}'")
        query = query.filter_by(status=status)
    appointments = query.order_by(Appointment.start_time.asc()).all()
    return jsonify([appointment.to_dict() for appointment in appointments])


@appointments_bp.route("/appointments", methods=["POST"])
def create_appointment():
    data = get_json_body()
    require_fields(data, "service_id", "customer_name", "customer_email", "start_time")
    candidate = _candidate_from(data)

    appointment = BookingService.from_app().book(
        candidate,
        customer_name=data["customer_name"],
        customer_email=_validate_email(data["customer_email"]),
        customer_phone=data.get("customer_phone"),
        notes=data.get("notes"),
    )
    return jsonify(appointment.to_dict()), 201


@appointments_bp.route("/appointments/check", methods=["POST"])
def check_appointment():
    """Dry run: report whether a booking would be accepted, without writing it."""
    candidate = _candidate_from(get_json_body())
    decision = BookingService.from_app().check(candidate)
    if decision.accepted:
        return jsonify({
            "accepted": True,
            "start_time": decision.start_time.isoformat(),
            "end_time": decision.end_time.isoformat(),
        })
    return jsonify({
        "accepted": False,
        "reason": decision.reason.value,
        "message": decision.message,
        "conflicting_appointments": list(decision.conflicting_ids),
    })


@appointments_bp.route("/appointments/<appointment_id>", methods=["GET"])
def get_appointment(appointment_id):
    appointment = db.session.get(Appointment, appointment_id)
    if appointment is None:
        raise NotFoundError(f"Appointment {appointment_id} not found")
    return jsonify(appointment.to_dict())


@appointments_bp.route("/appointments/<appointment_id>", methods=["PUT"])
def update_appointment(appointment_id):
    data = get_json_body()
    updates = {}
    for field in CONTACT_FIELDS:
        if field in data:
            if field == "customer_name" and not data[field]:
                raise ValidationError("'customer_name' cannot be empty")
            updates[field] = _validate_email(data[field]) if field == "customer_email" else data[field]

    bookings = BookingService.from_app()
    if "start_time" in data:
        appointment = bookings.reschedule(appointment_id, datetime_field(data, "start_time"), details=updates)
    else:
        appointment = bookings.update_details(appointment_id, updates)
    return jsonify(appointment.to_dict())


@appointments_bp.route("/appointments/<appointment_id>/cancel", methods=["POST"])
def cancel_appointment(appointment_id):
    appointment = BookingService.from_app().cancel(appointment_id)
    return jsonify(appointment.to_dict())


@appointments_bp.route("/appointments/<appointment_id>/complete", methods=["POST"])
def complete_appointment(appointment_id):
    appointment = BookingService.from_app().complete(appointment_id)
    return jsonify(appointment.to_dict())
