import logging
import os
import sys

from quoter.config.settings import LOG_FORMAT, LOG_LEVEL_ENV


def setup_logging(level=None):
    level = level or os.environ.get(LOG_LEVEL_ENV, "INFO")
    logging.basicConfig(
        level=str(level).upper(),
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stderr),
        ]
    )
    return logging.getLogger("quoter")
