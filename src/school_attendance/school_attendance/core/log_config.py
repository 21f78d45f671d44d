from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[logging.StreamHandler()])
    logging.getLogger().setLevel(level)
    # mysql-connector is chatty at INFO when pooling
    logging.getLogger("mysql.connector").setLevel(max(level, logging.WARNING))
