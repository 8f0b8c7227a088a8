import logging
import os

from flask import Flask, jsonify

from .config import Config
from .errors import register_error_handlers
from .models import db
# Import models so their tables are registered before create_all
from .models.appointment import Appointment  # noqa: F401
from .models.availability import Availability  # noqa: F401
from .models.service import Service  # noqa: F401
from .routes.appointments import appointments_bp
from .routes.availability import availability_bp
from .routes.services import services_bp

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


def create_app(config_object=None, **overrides):
    app = Flask(__name__)
    app.config.from_object(config_object or Config)
    app.config.update(overrides)

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    db.init_app(app)

    app.register_blueprint(services_bp, url_prefix=API_PREFIX)
    app.register_blueprint(appointments_bp, url_prefix=API_PREFIX)
    app.register_blueprint(availability_bp, url_prefix=API_PREFIX)
    register_error_handlers(app)

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy", "service": "agenda-scheduling"})

    with app.app_context():
        logger.info("Creating database tables...")
        db.create_all()
        logger.info("Database tables created (if they didn't exist).")

    return app


def main():
    app = create_app()
    port = int(os.getenv("PORT", "8088"))
    logger.info("Agenda scheduling listening on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port, debug=False)


if __name__ == "__main__":
    main()
