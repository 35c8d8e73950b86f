from __future__ import annotations

import logging
import os
from typing import Optional

from rich.logging import RichHandler

from .ansi import err_console

_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(level: Optional[str] = None, *, verbose: bool = False) -> None:
    if verbose:
        level_name = "DEBUG"
    else:
        level_name = (level or os.getenv("CHAT_RELAY_LOG_LEVEL", "WARNING")).upper()
    numeric_level = getattr(logging, level_name, logging.WARNING)

    logging.basicConfig(
        level=numeric_level,
        format="%(name)s | %(message)s",
        datefmt="%H:%M:%S",
        handlers=[RichHandler(console=err_console, show_path=False, markup=False)],
        force=True,
    )

    # Reduce noise from third-party libs unless explicitly debugging
    if not verbose:
        for noisy in _NOISY_LOGGERS:
            logging.getLogger(noisy).setLevel(max(logging.WARNING, numeric_level))
