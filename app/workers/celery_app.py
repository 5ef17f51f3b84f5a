from celery import Celery
from celery.schedules import crontab

from app.core.config import settings

# Create Celery app
celery_app = Celery(
    "hospital_scheduling",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["app.workers.tasks"]
)

# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    # Worker settings
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=1000,

    # Task routing
    task_routes={
        "app.workers.tasks.send_appointment_email": {"queue": "email"},
        "app.workers.tasks.*": {"queue": "default"},
    },

    # Periodic tasks
    beat_schedule={
        "daily-ensure-upcoming-schedules": {
            "task": "app.workers.tasks.ensure_upcoming_schedules",
            "schedule": crontab(hour=1, minute=0),  # 1:00 AM UTC
        },
    },

    result_expires=3600,  # 1 hour

    # Error handling
    task_reject_on_worker_lost=True,

    broker_connection_retry_on_startup=True,
)

# Optional: Configure for production
if settings.ENVIRONMENT == "production":
    celery_app.conf.update(
        worker_log_format="[%(asctime)s: %(levelname)s/%(processName)s] %(message)s",
        worker_task_log_format="[%(asctime)s: %(levelname)s/%(processName)s][%(task_name)s(%(task_id)s)] %(message)s",
        worker_log_color=False,
        worker_concurrency=4,
        broker_pool_limit=10,
    )
