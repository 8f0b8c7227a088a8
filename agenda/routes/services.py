import logging

from flask import Blueprint, current_app, jsonify, request

from . import get_json_body, int_field, require_fields
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import db
from ..models.appointment import Appointment
from ..models.service import Service, ServiceStatus

logger = logging.getLogger(__name__)

services_bp = Blueprint("services", __name__)

# Fields frozen once a service has been booked; status and price stay editable
FROZEN_WHEN_REFERENCED = ("name", "description", "duration_minutes", "currency")


def _get_service_or_404(service_id):
    service = db.session.get(Service, service_id)
    if service is None:
        raise NotFoundError("Service not found", code="ServiceNotFound")
    return service


def _status_field(data):
    status = data["status"]
    if status not in (ServiceStatus.ACTIVE.value, ServiceStatus.INACTIVE.value):
        raise ValidationError("'status' must be 'active' or 'inactive'")
    return status


def _currency_field(data):
    currency = data["currency"]
    if not isinstance(currency, str) or len(currency) != 3 or not currency.isalpha():
        raise ValidationError("'currency' must be a 3-letter code")
    return currency.upper()


@services_bp.route("/services", methods=["GET"])
def list_services():
    query = Service.query
    if request.args.get("include_inactive", "").lower() not in ("1", "true", "yes"):
        query = query.filter_by(status=ServiceStatus.ACTIVE.value)
    return jsonify([service.to_dict() for service in query.order_by(Service.name).all()])


@services_bp.route("/services", methods=["POST"])
def create_service():
    data = get_json_body()
    require_fields(data, "name", "duration_minutes")

    service = Service(
        name=data["name"],
        description=data.get("description"),
        duration_minutes=int_field(data, "duration_minutes", minimum=1),
        price=int_field(data, "price", minimum=0, required=False),
        currency=_currency_field(data) if "currency" in data else current_app.config["DEFAULT_CURRENCY"],
        status=_status_field(data) if "status" in data else ServiceStatus.ACTIVE.value,
    )
    db.session.add(service)
    db.session.commit()
    logger.info("Service %s created (%s, %d min)", service.id, service.name, service.duration_minutes)
    return jsonify(service.to_dict()), 201


@services_bp.route("/services/<service_id>", methods=["GET"])
def get_service(service_id):
    return jsonify(_get_service_or_404(service_id).to_dict())


@services_bp.route("/services/<service_id>", methods=["PUT"])
def update_service(service_id):
    service = _get_service_or_404(service_id)
    data = get_json_body()

    changes = {}
    if "name" in data:
        if not data["name"]:
            raise ValidationError("'name' cannot be empty")
        changes["name"] = data["name"]
    if "description" in data:
        changes["description"] = data["description"]
    if "duration_minutes" in data:
        changes["duration_minutes"] = int_field(data, "duration_minutes", minimum=1)
    if "price" in data:
        changes["price"] = int_field(data, "price", minimum=0, required=False)
    if "currency" in data:
        changes["currency"] = _currency_field(data)
    if "status" in data:
        changes["status"] = _status_field(data)

    referenced = db.session.query(Appointment.id).filter_by(service_id=service.id).first() is not None
    if referenced:
        # compared after normalisation, so "ngn" matches a stored "NGN"
        locked = [
            field for field in FROZEN_WHEN_REFERENCED
            if field in changes and changes[field] != getattr(service, field)
        ]
        if locked:
            raise ConflictError(
                "Service is referenced by appointments; only status and price can change",
                code="ServiceReferenced",
                details={"fields": locked},
            )

    for field, value in changes.items():
        setattr(service, field, value)
    db.session.commit()
    logger.info("Service %s updated", service.id)
    return jsonify(service.to_dict())


@services_bp.route("/services/<service_id>", methods=["DELETE"])
def delete_service(service_id):
    # Soft delete: existing appointments keep pointing at the row
    service = _get_service_or_404(service_id)
    service.status = ServiceStatus.INACTIVE.value
    db.session.commit()
    logger.info("Service %s deactivated", service.id)
    return "", 204
