import logging
from logging.handlers import RotatingFileHandler

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from content_server.core.config import LoggingSettings

custom_theme = Theme({
    "logging.level.debug": "cyan",
    "logging.level.info": "bold #FFFFFF on #61AD00",
    "logging.level.warning": "bold #FFFFFF on #DB6900",
    "logging.level.error": "bold #FFFFFF on #d70000",
    "logging.level.critical": "bold #FFFFFF on red",
    "log.time": "#A3A3A3",
})

# Shared Console so every handler writes to the same stream
console = Console(theme=custom_theme, stderr=True)

# Keep track of loggers to update levels dynamically
_loggers = []

FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CustomRichHandler(RichHandler):
    def render_message(self, record, message):
        """Tint warning and error messages so they stand out in long build logs."""
        text = super().render_message(record, message)

        if record.levelno >= logging.ERROR:
            text.style = "#FF7878"
        elif record.levelno >= logging.WARNING:
            text.style = "#FFD078"

        return text


# winston level names carried over from older config files
WINSTON_LEVELS = {"verbose": "DEBUG", "debug": "DEBUG", "silly": "DEBUG", "http": "INFO", "warn": "WARNING"}


def _parse_level(level: str) -> int:
    value = logging.getLevelName(WINSTON_LEVELS.get(level.lower(), level.upper()))
    if not isinstance(value, int):
        raise ValueError(f"unknown log level {level!r}")
    return value


def setup_logger(name: str = "content_server", settings: LoggingSettings | None = None) -> logging.Logger:
    """
    Setup the server logger: rich console output, plus a rotating log file
    when `settings.enabled` is set. Module loggers are children of this one
    (`content_server.manifest`, ...) and propagate into it.
    """
    settings = settings or LoggingSettings()
    logger = logging.getLogger(name)

    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = CustomRichHandler(
            console=console,
            rich_tracebacks=True,
            show_time=True,
            omit_repeated_times=False,
            show_path=False,
            markup=False,
            enable_link_path=False
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)

    if settings.enabled and not any(isinstance(h, RotatingFileHandler) for h in logger.handlers):
        settings.log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            settings.log_path / f"{settings.log_name}.log",
            maxBytes=settings.log_max_size_bytes,
            backupCount=settings.log_max_files,
            encoding="utf-8",
        )
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    logger.setLevel(_parse_level(settings.log_level))
    # Avoid double logging if root has handlers
    logger.propagate = False

    if logger not in _loggers:
        _loggers.append(logger)

    return logger


def set_debug_mode(enabled: bool):
    """
    Toggle DEBUG level for all registered loggers.
    """
    level = logging.DEBUG if enabled else logging.INFO
    for logger in _loggers:
        logger.setLevel(level)
