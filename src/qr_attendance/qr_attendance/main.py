from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .container import Container, build_container
from .database.bootstrap import apply_schema, ensure_seed_data, list_tables
from .notifications.controller import register as register_notifications
from .qr.controller import register as register_qr
from .schedules.controller import register as register_schedules
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[3] / "database" / "schema.sql"


def configure_logging(debug: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _prepare_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=SCHEMA_PATH)
        logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        ensure_seed_data(
            db_config,
            admin_email=getattr(settings, "SEED_ADMIN_EMAIL"),
            admin_password=getattr(settings, "SEED_ADMIN_PASSWORD"),
        )


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    configure_logging(app.config["DEBUG"])

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        _prepare_database(settings, db_config)
        container = build_container(
            db_config=db_config,
            jwt_secret=getattr(settings, "JWT_SECRET"),
            jwt_expires_hours=int(getattr(settings, "JWT_EXPIRES_HOURS", 24)),
            firebase_credentials=getattr(settings, "FIREBASE_CREDENTIALS", None),
            qr_prefix=getattr(settings, "QR_PREFIX", "QR"),
            notify_workers=int(getattr(settings, "NOTIFY_WORKERS", 2)),
        )

    app.extensions["qr_attendance"] = container
    register_error_handlers(app)

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"success": True, "status": "ok"})

    register_users(app, container)
    register_qr(app, container)
    register_attendance(app, container)
    register_schedules(app, container)
    register_notifications(app, container)

    return app


def run() -> None:
    app = create_app()
    settings = importlib.import_module(get_settings_module())
    app.run(host="0.0.0.0", port=int(getattr(settings, "PORT", 3000)), debug=app.config["DEBUG"])


if __name__ == "__main__":
    run()
