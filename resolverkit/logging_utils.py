from __future__ import annotations

import logging
import os
from datetime import datetime

_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_resolver_logger(
    name: str,
    *,
    level: str = "INFO",
    log_dir: str | None = None,
) -> tuple[logging.Logger, str | None]:
    """
    Configure a named logger for a resolver.

    Logs go to stderr at `level`; when `log_dir` is given, a UTF-8 file under
    that directory also receives everything from DEBUG up.
    """

    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level!r}")

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if log_dir else numeric_level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(numeric_level)
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    log_file: str | None = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        safe_name = name.replace(os.sep, "_")
        log_file = os.path.join(log_dir, f"{safe_name}_{stamp}.log")

        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    logger.debug("Resolver logging initialized for %s", name)
    if log_file:
        logger.debug("Resolver log file: %s", log_file)

    return logger, log_file
