"""
Logging configuration: a plain log file plus colored console output
"""
import logging
import os
from typing import Optional
import colorama
from config.settings import LOG_DATE_FORMAT, LOG_FILE, LOG_FORMAT, QUIET_LOGGERS

colorama.init()


class ColoredFormatter(logging.Formatter):
    """Colors console records by level and marks them with an emoji"""
    LEVEL_STYLES = {
        logging.DEBUG: (colorama.Fore.WHITE, "🐛"),
        logging.INFO: (colorama.Fore.CYAN, "ℹ️"),
        logging.WARNING: (colorama.Fore.YELLOW, "⚠️"),
        logging.ERROR: (colorama.Fore.RED, "❌"),
        logging.CRITICAL: (colorama.Fore.RED + colorama.Style.BRIGHT, "💥"),
    }
    DEFAULT_STYLE = (colorama.Fore.WHITE, "🔍")

    def format(self, record):
        color, emoji = self.LEVEL_STYLES.get(record.levelno, self.DEFAULT_STYLE)
        return f"{color}{emoji} {super().format(record)}{colorama.Style.RESET_ALL}"


def _owned(handler) -> bool:
    return getattr(handler, '_anonedits', False)


def setup_logging(log_file: Optional[str] = LOG_FILE, verbose: bool = False) -> logging.Logger:
    """
    Configure the root logger for the monitor

    Safe to call more than once: handlers from an earlier call are closed and
    replaced rather than stacked.

    Args:
        log_file: Path to the plain-text log; empty or None disables the file
        verbose: Log debug records and show them on the console, instead of
                 warnings only

    Returns:
        The configured root logger
    """
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    for handler in [h for h in logger.handlers if _owned(h)]:
        logger.removeHandler(handler)
        handler.close()

    handlers = []
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        handlers.append(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handlers.append(console_handler)

    for handler in handlers:
        handler._anonedits = True
        logger.addHandler(handler)
    return logger
