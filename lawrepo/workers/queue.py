# lawrepo/workers/queue.py

from typing import Any, Callable

from redis import Redis
from rq import Queue

from lawrepo.core.config import settings

_DEFAULT_QUEUE_NAME = "default"

_redis_conn: Redis | None = None


def get_redis_connection() -> Redis:
    global _redis_conn
    if _redis_conn is None:
        _redis_conn = Redis.from_url(settings.REDIS_URL)
    return _redis_conn


def get_queue(name: str = _DEFAULT_QUEUE_NAME) -> Queue:
    return Queue(name, connection=get_redis_connection())


def enqueue_job(
    func: Callable[..., Any],
    *args: Any,
    queue_name: str = _DEFAULT_QUEUE_NAME,
    **kwargs: Any,
) -> str:
    q = get_queue(queue_name)
    job = q.enqueue(func, *args, **kwargs)
    return job.id


def enqueue_thumbnail_task(video_id: str) -> str:
    from lawrepo.workers.tasks import thumbnail_task

    return enqueue_job(thumbnail_task, video_id, queue_name=settings.THUMBNAIL_QUEUE_NAME)
