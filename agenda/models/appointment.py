import enum
import uuid

from . import db
from .service import Service  # noqa: F401  (relationship target)
from ..errors import InvalidStatusTransition
from ..timeutils import utcnow


class AppointmentStatus(str, enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# confirmed is the only non-terminal status
ALLOWED_TRANSITIONS = {
    AppointmentStatus.CONFIRMED.value: {
        AppointmentStatus.CANCELLED.value,
        AppointmentStatus.COMPLETED.value,
    },
    AppointmentStatus.CANCELLED.value: set(),
    AppointmentStatus.COMPLETED.value: set(),
}


class Appointment(db.Model):
    __tablename__ = "appointments"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    service_id = db.Column(db.String(36), db.ForeignKey("services.id"), nullable=False)
    customer_name = db.Column(db.String(100), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    customer_phone = db.Column(db.String(50))
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)
    status = db.Column(db.String(50), nullable=False, default=AppointmentStatus.CONFIRMED.value, index=True)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    service = db.relationship("Service", backref=db.backref("appointments", lazy=True))

    __table_args__ = (
        db.CheckConstraint("end_time > start_time", name="ck_appointments_time_order"),
    )

    def transition_to(self, status, now=None):
        """Move to ``status``, enforcing confirmed -> {cancelled, completed}.

        Re-applying the current status is a no-op and returns False.
        """
        target = AppointmentStatus(status).value
        if self.status == target:
            return False
        if target not in ALLOWED_TRANSITIONS.get(self.status, set()):
            raise InvalidStatusTransition(self.status, target)
        self.status = target
        self.touch(now)
        return True

    def touch(self, now=None):
        self.updated_at = now or utcnow()

    def to_dict(self):
        return {
            "id": self.id,
            "service_id": self.service_id,
            "service_name": self.service.name if self.service else None,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "status": self.status,
            "notes": self.notes,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Appointment {self.customer_name} at {self.start_time}>"
