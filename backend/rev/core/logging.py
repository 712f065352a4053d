import logging

from rev.core.config import settings

LOG_FORMAT = '%(levelname)s:%(name)s:%(message)s'


def configure_logging(level: str | None = None) -> None:
    """Configure root logging once for the API process and the CLI scripts."""
    logging.basicConfig(level=(level or settings.LOG_LEVEL).upper(), format=LOG_FORMAT)
