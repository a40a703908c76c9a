from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .achievements.controller import register as register_achievements
from .container import AttendancePolicy, Container, build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_achievements, list_tables
from .records.controller import register as register_records
from .sessions.controller import register as register_sessions
from .stats.controller import register as register_stats
from .timetable.controller import register as register_timetable

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[3]


def register_controllers(app: Flask, container: Container) -> None:
    register_timetable(app, container)
    register_sessions(app, container)
    register_records(app, container)
    register_stats(app, container)
    register_achievements(app, container)


def create_app(container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

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

        if getattr(settings, "AUTO_INIT_DB", False):
            apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%s)", len(list_tables(db_config)))
        if getattr(settings, "AUTO_SEED_DB", False):
            apply_seed_sql(db_config, seed_path=REPO_ROOT / "database" / "seed.sql")
            logger.info("demo seed ready (%s new achievements)", ensure_demo_achievements(db_config))

        policy = AttendancePolicy(
            edit_window_minutes=int(getattr(settings, "EDIT_WINDOW_MINUTES", 10)),
            abuse_edit_threshold=int(getattr(settings, "ABUSE_EDIT_THRESHOLD", 3)),
            defaulter_threshold=int(getattr(settings, "DEFAULTER_THRESHOLD", 75)),
        )
        container = build_container(db_config=db_config, policy=policy)

    register_controllers(app, container)
    return app
