from __future__ import annotations

import argparse
import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.qr_attendance.qr_attendance.database.bootstrap import apply_schema, ensure_seed_data, list_tables

logger = logging.getLogger("init_db")


def main() -> None:
    parser = argparse.ArgumentParser(description="Apply schema.sql and optionally seed the default admin.")
    parser.add_argument("--seed", action="store_true", help="create the default admin and organization schedule")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=REPO_ROOT / "database" / "schema.sql")
    if args.seed:
        ensure_seed_data(
            db_config,
            admin_email=settings.SEED_ADMIN_EMAIL,
            admin_password=settings.SEED_ADMIN_PASSWORD,
        )

    logger.info(
        "schema applied -> %s@%s:%s/%s (tables=%s)",
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
        len(list_tables(db_config)),
    )


if __name__ == "__main__":
    main()
