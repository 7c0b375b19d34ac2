"""
Logging set-up for Wallclock Calendar.

Modules log through ``logging.getLogger(__name__)``; the launcher calls
setup_logging() once to route everything to stderr as
``[HH:MM:SS] LEVEL logger: message``.
"""

import logging
import os
import sys
from typing import Optional


LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: Optional[str] = None, debug: bool = False) -> None:
    if debug:
        level = 'DEBUG'
    elif level is None:
        level = os.environ.get('WALLCLOCK_LOG_LEVEL', 'INFO')

    numeric_level = getattr(logging, str(level).upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    root = logging.getLogger('wallclock')
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)
    root.propagate = False
