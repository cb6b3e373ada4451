"""Dump the database with ``mysqldump`` (MySQL client tools must be installed).

Sessions, audit entries and settings are all in MySQL, so this one file is
the whole backup.
"""

from __future__ import annotations

import importlib
import logging
import subprocess
from datetime import datetime
from pathlib import Path

from turnqr.config import get_settings_module

logger = logging.getLogger("turnqr.scripts.backup")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    db = settings.DB_CONFIG

    out_dir = Path(__file__).resolve().parents[1] / "backups"
    out_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = out_dir / f"{db['database']}_{ts}.sql"

    cmd = [
        "mysqldump",
        f"-h{db['host']}",
        f"-P{db.get('port', 3306)}",
        f"-u{db['user']}",
        f"-p{db['password']}",
        "--single-transaction",
        db["database"],
    ]

    try:
        with out_file.open("wb") as f:
            subprocess.run(cmd, stdout=f, stderr=subprocess.PIPE, check=True)
    except FileNotFoundError:
        raise SystemExit("mysqldump not found; install the MySQL client tools.") from None
    logger.info("backup created: %s", out_file)


if __name__ == "__main__":
    main()
