import os
import sys
from typing import List, Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
    "<level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def _launchpad_records(record) -> bool:
    return record["name"].split(".", 1)[0] == "forgd_launchpad"


def setup_logger(
    *,
    json_logs: bool = False,
    level: str = "INFO",
    log_file: Optional[str] = None,
    retention: str = "7 days",
) -> List[int]:
    """Route launchpad logs to stdout and, when `log_file` is set, to a rotating file.

    LOG_LEVEL in the environment overrides `level` for the console. The file sink keeps DEBUG and up from
    forgd_launchpad modules only, so per-trade [BUY]/[SELL] lines and graduation sweeps are still on disk
    when the console runs quieter. `log_file` may carry loguru time placeholders, e.g.
    "logs/forgd_launchpad_{time:YYYY-MM-DD}.log".

    Returns the ids of the sinks added.
    """
    console_level = os.getenv("LOG_LEVEL", level).upper()
    logger.remove()

    if json_logs:
        sinks = [logger.add(sys.stdout, serialize=True, level=console_level)]
    else:
        sinks = [logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level, colorize=True)]

    if log_file:
        sinks.append(
            logger.add(
                log_file,
                format=FILE_FORMAT,
                filter=_launchpad_records,
                rotation="50 MB",
                retention=retention,
                compression="gz",
                level="DEBUG",
                serialize=json_logs,
            )
        )
    return sinks
