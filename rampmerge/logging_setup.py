"""
Configures the root logger with a console handler and a rotating file
handler (``rampmerge.log``, 1 MB, 2 backups).

Call :func:`setup_logging` once at startup, before the kernel is created.
"""

import logging
from logging.handlers import RotatingFileHandler


def setup_logging(level: int = logging.INFO, log_file: str = "rampmerge.log") -> None:
    """Apply a unified log format to both console and file output.

    Parameters
    ----------
    level : int
        Minimum severity level (e.g. ``logging.DEBUG``, ``logging.INFO``).
    log_file : str
        Path of the rotating log file.
    """
    root = logging.getLogger()
    root.setLevel(level)

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    ch = logging.StreamHandler()
    ch.setFormatter(fmt)

    fh = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=2)
    fh.setFormatter(fmt)

    root.handlers.clear()
    root.addHandler(ch)
    root.addHandler(fh)
