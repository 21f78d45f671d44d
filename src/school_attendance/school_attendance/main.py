from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .auth.controller import register as register_auth
from .biometrics.controller import register as register_biometrics
from .common.web import json_response, register_error_handlers
from .container import Container, build_container
from .core.constants import DEFAULT_TOKEN_TTL
from .core.log_config import configure_logging
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_admin_user, list_tables
from .districts.controller import register as register_districts
from .excuses.controller import register as register_excuses
from .groups.controller import register as register_groups
from .institutions.controller import register as register_institutions
from .roles.controller import register as register_roles
from .students.controller import register as register_students
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _prepare_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        username = getattr(settings, "SEED_ADMIN_USERNAME", None)
        password = getattr(settings, "SEED_ADMIN_PASSWORD", None)
        if username and password:
            ensure_admin_user(db_config, username=username, password=password)
        logger.info("Seed data ready")


def create_app(container: Optional[Container] = None) -> Flask:
    """Build the API.

    Passing a ready container skips every database side effect (tests wire one
    from in-memory repositories).
    """
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.json.sort_keys = False

    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))
    CORS(app, origins=getattr(settings, "CORS_ORIGINS", "*"))
    register_error_handlers(app)

    if container is None:
        db_config = dict(getattr(settings, "DB_CONFIG"))
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
            jwt_expires_in=getattr(settings, "JWT_EXPIRES_IN", DEFAULT_TOKEN_TTL),
        )

    @app.route("/api/health", methods=["GET"], endpoint="health")
    def health():
        return json_response({"status": "OK", "message": "API funcionando correctamente."})

    register_auth(app, container)
    register_districts(app, container)
    register_institutions(app, container)
    register_roles(app, container)
    register_users(app, container)
    register_students(app, container)
    register_groups(app, container)
    register_attendance(app, container)
    register_excuses(app, container)
    register_biometrics(app, container)

    return app
