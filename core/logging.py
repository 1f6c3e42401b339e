import logging

from core.config import settings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def setup_logging() -> None:
    """
    Configure root logging once for the whole process.
    Uvicorn keeps its own handlers; we only set level + format for ours.
    """
    level = getattr(logging, str(settings.LOG_LEVEL).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)

    # httpx logs every request at INFO, too noisy for webhook fan-out
    logging.getLogger("httpx").setLevel(logging.WARNING)
