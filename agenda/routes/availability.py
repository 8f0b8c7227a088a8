import logging
from datetime import timedelta

from flask import Blueprint, current_app, jsonify, request

from . import date_arg, get_json_body, int_field, require_fields, time_field
from ..errors import NotFoundError, ValidationError
from ..models import db
from ..models.availability import Availability
from ..repository import BookingRepository
from ..slots import generate_slots
from ..timeutils import day_bounds

logger = logging.getLogger(__name__)

availability_bp = Blueprint("availability", __name__)


@availability_bp.route("/availability", methods=["GET"])
def list_availability():
    windows = Availability.query.order_by(Availability.day_of_week, Availability.start_time).all()
    return jsonify([window.to_dict() for window in windows])


@availability_bp.route("/availability/<int:day_of_week>", methods=["GET"])
def get_availability(day_of_week):
    window = Availability.query.filter_by(day_of_week=day_of_week).first()
    if window is None:
        raise NotFoundError(f"No availability set for day {day_of_week}")
    return jsonify(window.to_dict())


@availability_bp.route("/availability", methods=["POST", "PUT"])
def set_availability():
    """Create or replace the window for one weekday."""
    data = get_json_body()
    require_fields(data, "day_of_week", "start_time", "end_time")
    day_of_week = int_field(data, "day_of_week", minimum=0, maximum=6)
    start_time = time_field(data, "start_time")
    end_time = time_field(data, "end_time")
    if start_time >= end_time:
        raise ValidationError("'start_time' must be before 'end_time'")
    is_available = data.get("is_available", True)
    if not isinstance(is_available, bool):
        raise ValidationError("'is_available' must be a boolean")

    window = Availability.query.filter_by(day_of_week=day_of_week).with_for_update().first()
    created = window is None
    if created:
        window = Availability(day_of_week=day_of_week)
        db.session.add(window)
    window.start_time = start_time
    window.end_time = end_time
    window.is_available = is_available
    db.session.commit()
    logger.info("Availability for day %d set to %s-%s (open=%s)", day_of_week, start_time, end_time, is_available)
    return jsonify(window.to_dict()), 201 if created else 200


@availability_bp.route("/slots", methods=["GET"])
def list_slots():
    service_id = request.args.get("service_id")
    day = date_arg("date")
    if not service_id or day is None:
        raise ValidationError("Missing service_id or date")

    repository = BookingRepository(db.session)
    service = repository.get_service(service_id)
    if service is None:
        raise NotFoundError("Service not found", code="ServiceNotFound")

    config = current_app.config
    start, end = day_bounds(day)
    slots = generate_slots(
        service,
        day,
        repository.load_availability(day.weekday()),
        repository.load_overlapping_appointments(start, end),
        now=config["CLOCK"](),
        interval_minutes=config["SLOT_INTERVAL_MINUTES"],
        min_notice=timedelta(minutes=config["BOOKING_MIN_NOTICE_MINUTES"]),
        require_future=config["BOOKING_REQUIRE_FUTURE"],
    )
    return jsonify({
        "service_id": service.id,
        "date": day.isoformat(),
        "slots": [slot.to_dict() for slot in slots],
    })
