import sys
from loguru import logger

LOG_FORMAT = "<green>{time:HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> - <level>{message}</level>"


def configure_logging(level: str = "INFO", sink=None) -> int:
    """Replace loguru's default handler with a single formatted sink. Returns the handler id."""
    logger.remove()
    return logger.add(sink if sink is not None else sys.stderr, level=level.upper(), format=LOG_FORMAT)
