import enum
import uuid

from . import db
from ..timeutils import utcnow


class ServiceStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Service(db.Model):
    __tablename__ = "services"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text)
    duration_minutes = db.Column(db.Integer, nullable=False)
    price = db.Column(db.BigInteger)  # minor currency units
    currency = db.Column(db.String(3), nullable=False, default="NGN")
    status = db.Column(db.String(50), nullable=False, default=ServiceStatus.ACTIVE.value)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        db.CheckConstraint("duration_minutes > 0", name="ck_services_duration_positive"),
    )

    @property
    def is_active(self):
        return self.status == ServiceStatus.ACTIVE.value

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "price": self.price,
            "currency": self.currency,
            "status": self.status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Service {self.name}>"
