from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from flask import Flask

from .config import get_settings_module
from .container import Container, build_container
from .core.constants import DEFAULT_TIMEZONE
from .core.enums import ClipMode
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_accounts, list_tables
from .common.web import register_error_handlers

from .dashboard.controller import register as register_dashboard
from .employees.controller import register as register_employees
from .locations.controller import register as register_locations
from .reports.controller import register as register_reports
from .sessions.controller import register as register_sessions
from .settings.controller import register as register_settings
from .users.controller import register as register_users

logger = logging.getLogger("turnqr")

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["PUBLIC_BASE_URL"] = getattr(settings, "PUBLIC_BASE_URL", "http://localhost:5000")

    if container is None:
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
            ensure_demo_accounts(db_config)
            logger.info("demo seed ready")

        container = build_container(
            db_config=db_config,
            tz=ZoneInfo(getattr(settings, "TIMEZONE", DEFAULT_TIMEZONE)),
            clip_mode=ClipMode(getattr(settings, "REPORT_CLIP_MODE", ClipMode.END_ONLY.value)),
        )

    app.extensions["turnqr"] = container
    register_error_handlers(app)

    register_users(app, container)
    register_sessions(app, container)
    register_employees(app, container)
    register_locations(app, container)
    register_settings(app, container)
    register_reports(app, container)
    register_dashboard(app, container)

    return app
