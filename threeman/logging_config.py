"""Logging setup for the CLI and long-running league jobs."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER = 'threeman'

# Third-party loggers that are chatty at INFO while nflreadpy downloads data
NOISY_LOGGERS = ('urllib3', 'requests', 'nflreadpy')

FILE_FORMAT = '%(asctime)s %(levelname)-8s %(name)s [%(threadName)s] %(message)s'
CONSOLE_FORMAT = '%(levelname)s: %(message)s'


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = True,
    log_to_console: bool = True,
    run_name: Optional[str] = None,
) -> logging.Logger:
    """
    Configure the 'threeman' logger hierarchy.

    Module loggers ('threeman.backfill', 'threeman.locking', ...) propagate
    to it. File output includes the thread name so backfill workers can be
    told apart. Calling this again replaces the previous handlers.

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level (default: INFO)
        log_to_file: Write a timestamped log file per run
        log_to_console: Echo to stdout
        run_name: Included in the log file name, e.g. 'backfill'

    Returns:
        The configured 'threeman' logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_to_file:
        log_dir = Path(log_dir or 'logs')
        log_dir.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        name = f'{ROOT_LOGGER}_{run_name}_{stamp}' if run_name else f'{ROOT_LOGGER}_{stamp}'
        file_handler = logging.FileHandler(log_dir / f'{name}.log', encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Logger under the 'threeman' hierarchy ('cli' -> 'threeman.cli')."""
    if name != ROOT_LOGGER and not name.startswith(f'{ROOT_LOGGER}.'):
        name = f'{ROOT_LOGGER}.{name}'
    return logging.getLogger(name)
