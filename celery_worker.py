#!/usr/bin/env python3
"""
Celery worker for the seller portal.
Run this script to process queued emails (OTP codes, new-order alerts).
"""

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

if __name__ == "__main__":
    from core.celery import EMAIL_QUEUE, celery_app
    from core.config import settings
    from core.logging_config import configure_logging

    configure_logging()

    celery_app.worker_main([
        "worker",
        f"--loglevel={settings.LOG_LEVEL}",
        f"--queues={EMAIL_QUEUE}",
        "--concurrency=4",
        "--without-gossip",
        "--without-mingle",
        "--without-heartbeat",
    ])
