import logging
import os

from rich.console import Console
from rich.logging import RichHandler

# -------------------------------------------------
# Console with proper color handling
# -------------------------------------------------
console = Console(force_terminal=True, color_system="truecolor")

NOISY_LOGGERS = {
    "sqlalchemy.engine": logging.WARNING,
    "sqlalchemy.pool": logging.WARNING,
    "sqlalchemy.dialects": logging.WARNING,
    "sqlalchemy.orm": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.access": logging.WARNING,
    "uvicorn.error": logging.INFO,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "openai": logging.WARNING,
    "urllib3": logging.WARNING,
}


class CustomLogger:
    """
    Configures rich-formatted logging once per process and hands out
    named loggers. LOG_LEVEL overrides the default INFO level.
    """

    _configured = False

    def __init__(self, name: str = "vector_ingest", level: str | None = None):
        self.name = name
        self.level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
        if not CustomLogger._configured:
            self._configure()
            CustomLogger._configured = True

    def _configure(self) -> None:
        logging.basicConfig(
            level=self.level,
            format="%(message)s",  # Rich handles formatting
            datefmt="[%H:%M:%S.%f]",
            handlers=[
                RichHandler(
                    console=console,
                    rich_tracebacks=True,
                    tracebacks_show_locals=False,
                    show_time=True,
                    show_level=True,
                    show_path=True,
                    log_time_format="%H:%M:%S.%f",
                )
            ],
        )

        # -------------------------------------------------
        # Silence noisy libraries
        # -------------------------------------------------
        for logger_name, logger_level in NOISY_LOGGERS.items():
            logging.getLogger(logger_name).setLevel(logger_level)

    def get_logger(self, name: str | None = None) -> logging.Logger:
        return logging.getLogger(name or self.name)
