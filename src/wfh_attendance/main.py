from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .checkin.controller import register as register_checkin
from .container import build_container_from_settings
from .database.bootstrap import apply_schema, list_tables
from .reconciliation.controller import register as register_reconciliation

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "database" / "schema.sql"


def configure_logging(settings) -> None:
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def load_settings():
    load_dotenv(override=False)
    return importlib.import_module(get_settings_module())


def create_app(*, settings=None, container=None) -> Flask:
    settings = settings or load_settings()
    configure_logging(settings)

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["CRON_API_KEY"] = getattr(settings, "CRON_API_KEY", None)

    db_config = getattr(settings, "DB_CONFIG")
    logger.info(
        "settings=%s db=%s@%s:%s/%s tz=%s",
        settings.__name__ if hasattr(settings, "__name__") else type(settings).__name__,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        getattr(settings, "BUSINESS_TIMEZONE", None),
    )

    if container is None:
        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=SCHEMA_PATH)
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        container = build_container_from_settings(settings)

    register_reconciliation(app, container)
    register_checkin(app, container)

    return app
