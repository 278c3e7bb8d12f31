"""
Celery Application Configuration for AUTOFLOW

Production runner for automations: one task per contact event, executed by
separate worker processes.

Architecture:
- Message Broker: Redis
- Result Backend: Redis
- Queue: "automations"

Key Features:
- JSON serialization (safe, debuggable)
- Task timeout protection
- Result expiration (24 hours)
- No automatic retries: a failed run is reported in its result
"""

import logging
from celery import Celery
from kombu import Queue, Exchange

from ..config import get_settings
from ..core.exceptions import ConfigurationError
from ..core.logging_config import setup_logging

settings = get_settings()

# Workers default to JSON logs
setup_logging(
    level=settings.log_level,
    json_logs=True,
    log_file=settings.log_file
)

logger = logging.getLogger(__name__)

if not settings.redis_url:
    raise ConfigurationError(
        "REDIS_URL environment variable not set. "
        "Required for Celery message broker and result backend.",
        setting="REDIS_URL",
    )

celery_app = Celery("autoflow")

celery_app.conf.update(
    broker_url=settings.redis_url,
    result_backend=settings.redis_url,
    broker_connection_retry_on_startup=True,

    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],

    timezone="UTC",
    enable_utc=True,

    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,

    # A run is synchronous and short; anything longer is stuck
    task_time_limit=120,
    task_soft_time_limit=100,

    result_expires=86400,  # 24 hours in seconds

    task_default_queue="automations",
    task_default_exchange="automations",
    task_default_routing_key="automation.run",
    task_queues=(
        Queue(
            "automations",
            Exchange("automations"),
            routing_key="automation.run",
        ),
    ),
    task_routes={
        "run_automation_task": {
            "queue": "automations",
            "routing_key": "automation.run",
        },
    },

    worker_send_task_events=True,
    task_send_sent_event=True,
    worker_task_log_format="[%(asctime)s: %(levelname)s/%(processName)s][%(task_name)s(%(task_id)s)] %(message)s",
)

logger.info("Celery app configured successfully")
logger.info(f"Broker: {settings.redis_url.split('@')[1] if '@' in settings.redis_url else 'configured'}")

# Must come after celery_app is configured
from . import tasks  # noqa: F401, E402
