import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once; uvicorn keeps its own handlers."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level or settings.LOG_LEVEL)
        return
    logging.basicConfig(level=level or settings.LOG_LEVEL, format=LOG_FORMAT)
