from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask, jsonify
from flask.logging import default_handler

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .container import Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, list_tables
from .database.connection import DBConfig
from .reports.controller import register as register_reports
from .sessions.controller import register as register_sessions

REPO_ROOT = Path(__file__).resolve().parents[3]


def _configure_logging(level) -> None:
    """Route the service loggers through Flask's handler at the configured level.

    Must run before the first access to ``app.logger``, which is a child of the
    package logger and would otherwise get a second copy of the handler.
    """

    package_logger = logging.getLogger(__package__)
    package_logger.setLevel(level)
    if default_handler not in package_logger.handlers:
        package_logger.addHandler(default_handler)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    log_level = getattr(settings, "LOG_LEVEL", logging.INFO)
    _configure_logging(log_level)
    app.logger.setLevel(log_level)

    if container is None:
        # Helpful startup info to avoid "connected but no tables" confusion.
        app.logger.info("settings=%s db=%s", settings_module, DBConfig.from_dict(db_config).describe())

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            app.logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            app.logger.info("demo seed ready")

        container = build_container(db_config=db_config)

    app.extensions["school_attendance"] = container

    register_attendance(app, container)
    register_sessions(app, container)
    register_reports(app, container)

    @app.route("/healthz", endpoint="healthz")
    def healthz():
        return jsonify({"status": "ok"})

    return app
