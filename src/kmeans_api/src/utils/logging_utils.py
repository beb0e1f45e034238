import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> "
    "<dim>{extra}</dim>"
)


def configure_logger(level: str = "INFO", sink=sys.stderr) -> int:
    """Replace Loguru sinks with a single colored one; returns the sink id."""
    logger.remove()
    return logger.add(
        sink,
        level=level.upper(),
        colorize=True,
        format=LOG_FORMAT,
        backtrace=True,
        diagnose=False,
    )


def run_logger(run_id: str, **kwargs):
    """Logger carrying the run id on every record it emits."""
    return logger.bind(run_id=run_id, **kwargs)


def log_warning(message: str, **kwargs) -> None:
    logger.bind(**kwargs).warning(message)
