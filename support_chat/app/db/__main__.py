"""Apply conversation database migrations and exit."""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from ..config import AppConfig
from .store import ConversationStore

LOGGER = logging.getLogger(__name__)


def main() -> int:
    load_dotenv()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = AppConfig.from_env()
    config.ensure_dirs()
    LOGGER.info("Running database migrations for %s", config.state_db_path)
    try:
        with ConversationStore(config.state_db_path):
            pass
    except Exception:  # noqa: BLE001 - report and exit non-zero
        LOGGER.exception("Migration failed")
        return 1
    LOGGER.info("Migrations completed successfully")
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
