# lawrepo/workers/worker_main.py

from rq import Queue, SimpleWorker

from lawrepo.core.config import settings
from lawrepo.core.logging_config import setup_logging
from lawrepo.workers.queue import get_redis_connection


def main():
    setup_logging(settings.LOG_LEVEL)
    redis_conn = get_redis_connection()

    queue_names = [settings.THUMBNAIL_QUEUE_NAME]
    queues = [Queue(name, connection=redis_conn) for name in queue_names]

    worker = SimpleWorker(queues, connection=redis_conn)
    worker.work()


if __name__ == "__main__":
    main()
