"""Root logging configuration for the desktop app.

Honours ``LOG_LEVEL`` (default INFO). Uses Rich for console output when
stdout is a TTY and ``NO_COLOR`` is not set, a plain stream handler otherwise.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from rich.logging import RichHandler

PLAIN_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    level_str = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_level = getattr(logging, level_str, logging.INFO)

    root = logging.getLogger()
    root.setLevel(log_level)
    if any(getattr(h, "_voice_app", False) for h in root.handlers):
        return root

    handler: logging.Handler
    if os.getenv("NO_COLOR") is None and sys.stdout.isatty():
        handler = RichHandler(
            rich_tracebacks=True,
            show_time=True,
            show_level=True,
            show_path=False,
            markup=False,
        )
        # RichHandler renders time and level itself
        handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    else:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt="%H:%M:%S"))
    handler._voice_app = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    return root
