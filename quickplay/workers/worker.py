# Run this with: rq worker -u redis://localhost:6379/0 triggers
# or: python -m quickplay.workers.worker (which will spin a small worker loop for dev)
import logging

from redis import Redis
from rq import Queue, Worker

from quickplay.core.config import settings
from quickplay.core.logging import configure_logging

configure_logging(settings.ENV)
logger = logging.getLogger("quickplay.worker")

listen = [settings.TRIGGER_QUEUE_NAME]


def main() -> None:
    conn = Redis.from_url(settings.REDIS_URL)
    worker = Worker([Queue(name, connection=conn) for name in listen], connection=conn)
    logger.info("Starting RQ worker (interactive).", extra={"event_type": "worker_start"})
    worker.work()


if __name__ == '__main__':
    main()
