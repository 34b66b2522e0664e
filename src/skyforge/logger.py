import logging

from rich.logging import RichHandler


def setup_logger(
    name: str = "skyforge", level: int = logging.WARNING
) -> logging.Logger:
    """Configures and returns a logger with RichHandler."""

    logger = logging.getLogger(name)

    # Avoid adding duplicate handlers if setup is called multiple times

    if not logger.handlers:
        logger.setLevel(level)

        handler = RichHandler(rich_tracebacks=True, markup=True, show_path=False)

        handler.setFormatter(logging.Formatter("%(message)s"))

        logger.addHandler(handler)

    else:
        logger.setLevel(level)

    return logger


def set_log_level(level: int | str) -> None:
    """Adjusts the shared logger, e.g. when the CLI is run with -v."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)


# Global logger instance (default to WARNING so polling stays quiet)


logger = setup_logger(level=logging.WARNING)
