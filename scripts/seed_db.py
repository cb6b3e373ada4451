from __future__ import annotations

import importlib
import logging
from pathlib import Path

from turnqr.config import get_settings_module
from turnqr.database.bootstrap import apply_seed_sql, ensure_demo_accounts

logger = logging.getLogger("turnqr.scripts.seed_db")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    seed_path = Path(__file__).resolve().parents[1] / "database" / "seed.sql"
    apply_seed_sql(db_config, seed_path=seed_path)
    ensure_demo_accounts(db_config)

    logger.info(
        "seeded database -> %s@%s:%s/%s",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )


if __name__ == "__main__":
    main()
