import logging
import sys
from typing import Optional

LOG_FORMAT = "{asctime} - {levelname} - {message}"
LOG_DATEFMT = "%Y-%m-%d %H:%M"

def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> None:
    # stdout carries the raw response, so progress goes to stderr or a file
    if log_file:
        handler_args = dict(filename=log_file, encoding="utf-8", filemode="a")
    else:
        handler_args = dict(stream=sys.stderr)

    logging.basicConfig(
        format=LOG_FORMAT,
        style="{",
        datefmt=LOG_DATEFMT,
        level=level,
        force=True,
        **handler_args,
    )
