"""
Celery Worker Configuration
Runs dashboard report exports off the request path, with Redis as
message broker and result backend.
"""

from celery import Celery

from restaurant_ops.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    'restaurant_ops_worker',
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=['restaurant_ops.tasks'],
)

celery_app.conf.update(
    task_serializer='json',
    accept_content=['json'],
    result_serializer='json',
    timezone='UTC',
    enable_utc=True,

    # Exports hold a file lock; one at a time per process
    worker_prefetch_multiplier=1,
    worker_concurrency=2,

    result_expires=3600,

    task_acks_late=True,
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,
)


if __name__ == '__main__':
    celery_app.start()
