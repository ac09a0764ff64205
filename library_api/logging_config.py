import logging

from library_api.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging() -> None:
    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=LOG_FORMAT)
    # uvicorn installs its own handlers; keep its access log out of ours
    logging.getLogger("uvicorn.access").propagate = False
