from celery import Celery
from core.config import settings

EMAIL_QUEUE = "emails"

# Redis is both broker and result backend
celery_app = Celery(
    "seller_portal",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["tasks.email_tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # OTP and new-order mails are the only tasks; keep them off any shared default queue
    task_routes={"tasks.email_tasks.*": {"queue": EMAIL_QUEUE}},
    task_default_queue=EMAIL_QUEUE,
    task_time_limit=5 * 60,
    task_soft_time_limit=4 * 60,
    result_expires=24 * 60 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
    # Tests run tasks inline without a broker
    task_always_eager=settings.TESTING,
    task_eager_propagates=False,
    task_store_eager_result=False,
)
