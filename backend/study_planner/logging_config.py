import logging
import os
from logging.config import dictConfig
from typing import Any, Dict, Optional

from .config import Settings, get_settings

DEFAULT_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
PACKAGE_LOGGER = "study_planner"


def configure_logging(level: Optional[str] = None, settings: Optional[Settings] = None) -> None:
    """Configure process logging for the study planner.

    The level defaults to ``Settings.log_level`` (``STUDY_PLANNER_LOG_LEVEL``). Setting
    ``STUDY_PLANNER_DEBUG_ENGINE=1`` additionally turns on the per-stage debug
    records emitted while a plan is built.
    """
    root_level = (level or (settings or get_settings()).log_level).upper()
    package_level = "DEBUG" if os.getenv("STUDY_PLANNER_DEBUG_ENGINE", "0") == "1" else logging.NOTSET

    loggers: Dict[str, Any] = {PACKAGE_LOGGER: {"level": package_level}}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "plain": {"format": DEFAULT_LOG_FORMAT},
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "formatter": "plain",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": loggers,
            "root": {"handlers": ["stderr"], "level": root_level},
        }
    )
