"""
Pytest bootstrap.
Forces the testing environment before any application module reads settings,
so the app binds to in-memory SQLite, the in-process OTP store, eager Celery
and the in-memory notification backend.
"""
import os

os.environ["TESTING"] = "True"
os.environ["DEBUG"] = "False"
os.environ.setdefault("OTP_RESEND_INTERVAL_SECONDS", "0")
os.environ.setdefault("STATS_TIMEZONE", "UTC")
