import uuid

from . import db

WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


class Availability(db.Model):
    """Bookable window for one weekday (0=Monday ... 6=Sunday)."""

    __tablename__ = "availability"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    day_of_week = db.Column(db.Integer, nullable=False, unique=True)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    is_available = db.Column(db.Boolean, nullable=False, default=True)

    __table_args__ = (
        db.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_availability_day_of_week"),
        db.CheckConstraint("start_time < end_time", name="ck_availability_window_order"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "day_of_week": self.day_of_week,
            "day_name": WEEKDAY_NAMES[self.day_of_week],
            "start_time": self.start_time.strftime("%H:%M:%S"),
            "end_time": self.end_time.strftime("%H:%M:%S"),
            "is_available": self.is_available,
        }

    def __repr__(self):
        return f"<Availability {WEEKDAY_NAMES[self.day_of_week]} {self.start_time}-{self.end_time}>"
