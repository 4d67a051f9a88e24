# Colored console logging shared by the API modules.
import logging


class CustomFormatter(logging.Formatter):
    """
    A custom formatter that colors log messages by level.

    Usage:
        setup_logging("DEBUG")
        logger = get_logger(__name__)
        logger.info("ready")
    """
    grey = "\x1b[37;20m"
    yellow = "\x1b[33;20m"
    red = "\x1b[31;20m"
    bold_red = "\x1b[31;1m"
    dark_grey = "\x1b[30;1m"
    reset = "\x1b[0m"
    fmt = "[%(levelname)s] %(asctime)s - %(name)s - %(message)s"

    FORMATS = {
        logging.DEBUG: dark_grey + fmt + reset,
        logging.INFO: grey + fmt + reset,
        logging.WARNING: yellow + fmt + reset,
        logging.ERROR: red + fmt + reset,
        logging.CRITICAL: bold_red + fmt + reset,
    }

    def format(self, record):
        log_fmt = self.FORMATS.get(record.levelno, self.fmt)
        formatter = logging.Formatter(log_fmt)
        return formatter.format(record)


ROOT_LOGGER_NAME = "postgen"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Configure the package logger with a colored console handler.

    Safe to call more than once; the handler is only attached the first time.
    """
    log = logging.getLogger(ROOT_LOGGER_NAME)
    log.setLevel(level.upper())
    if not any(isinstance(h.formatter, CustomFormatter) for h in log.handlers):
        ch = logging.StreamHandler()
        ch.setFormatter(CustomFormatter())
        log.addHandler(ch)
    return log


def get_logger(name: str) -> logging.Logger:
    """Return a child of the package logger for the given module name."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
