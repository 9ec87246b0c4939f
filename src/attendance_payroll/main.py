from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.http import register_error_handlers
from .container import build_container
from .core.constants import DEFAULT_HOURS_PER_DAY, DEFAULT_LATE_PENALTY_PER_DAY, DEFAULT_TENANT_ID
from .database.bootstrap import apply_schema, list_tables
from .payroll.controller import register as register_payroll

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TENANT_ID"] = getattr(settings, "TENANT_ID", DEFAULT_TENANT_ID)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logger.info(
        "settings=%s db=%s@%s:%s/%s tenant=%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        app.config["TENANT_ID"],
    )

    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        schema_path = Path(__file__).resolve().parents[2] / "database" / "schema.sql"
        apply_schema(db_config, schema_path=schema_path)
        logger.info("Schema ready (tables=%d)", len(list_tables(db_config)))

    container = build_container(
        db_config=db_config,
        tenant_id=app.config["TENANT_ID"],
        hours_per_day=float(getattr(settings, "STANDARD_HOURS_PER_DAY", DEFAULT_HOURS_PER_DAY)),
        late_penalty_per_day=float(getattr(settings, "LATE_PENALTY_PER_DAY", DEFAULT_LATE_PENALTY_PER_DAY)),
    )

    register_error_handlers(app)
    register_attendance(app, container)
    register_payroll(app, container)

    return app
