from __future__ import annotations

import logging

from rq import Worker

from api.config import get_settings
from api.logging_config import configure_logging
from api.queue import get_redis

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    configure_logging(settings)
    logger.info("Starting report worker on queue %r", settings.queue_name)
    worker = Worker([settings.queue_name], connection=get_redis())
    worker.work(with_scheduler=True)


if __name__ == "__main__":
    main()
