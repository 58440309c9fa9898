import logging
import os
import sys


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s | %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once per process."""
    level_name = (level or os.getenv("PRESETCOMPOSE_LOG_LEVEL", "INFO")).upper()
    root_logger = logging.getLogger()
    if root_logger.handlers:
        root_logger.setLevel(getattr(logging, level_name, logging.INFO))
        return

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stderr)],
    )
