import logging

LOG_FORMAT = "%(asctime)s - [%(levelname)s] - %(name)s - %(funcName)s() - %(message)s"

logger = logging.getLogger("fundhub_indexer")


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the package logger; safe to call repeatedly."""
    logger.setLevel(level)
    logger.propagate = False  # uvicorn configures the root logger too
    if not logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT))
        logger.addHandler(console_handler)
    return logger
