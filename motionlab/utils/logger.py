import logging
from typing import Optional
import os
import sys


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when writing to a terminal."""

    # ANSI color codes
    BLACK, RED, GREEN, YELLOW, BLUE, MAGENTA, CYAN, WHITE = range(8)
    RESET_SEQ = "\033[0m"
    COLOR_SEQ = "\033[1;%dm"

    COLORS = {
        'WARNING': YELLOW,
        'INFO': WHITE,
        'DEBUG': BLUE,
        'CRITICAL': YELLOW,
        'ERROR': RED
    }

    def __init__(self, msg, use_color=True):
        logging.Formatter.__init__(self, msg)
        self.use_color = use_color and sys.stderr.isatty()

    def format(self, record):
        levelname = record.levelname
        if self.use_color and levelname in self.COLORS:
            # Work on a copy so file handlers sharing the record stay uncolored
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = self.COLOR_SEQ % (30 + self.COLORS[levelname]) + levelname + self.RESET_SEQ
        return logging.Formatter.format(self, record)


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name: str, log_level: Optional[str] = None, log_file: Optional[str] = None) -> logging.Logger:
    """Get a configured logger instance.

    Args:
        name: Logger name, usually ``__name__`` of the calling module
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Falls back to the ``LOG_LEVEL`` environment variable, then INFO.
        log_file: Path to log file (optional)

    Returns:
        Configured logger instance
    """
    if log_level is None:
        log_level = os.environ.get('LOG_LEVEL', 'INFO')

    logger = logging.getLogger(name)
    logger.setLevel(log_level.upper())

    # Re-configuring replaces our own handlers instead of stacking duplicates
    for handler in list(logger.handlers):
        if getattr(handler, '_motionlab', False):
            logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT))
    console_handler._motionlab = True
    logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler._motionlab = True
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
