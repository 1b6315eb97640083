"""
One-time codes for seller email verification and password reset, kept in
Redis with a TTL. A code is tied to one email and one purpose; five wrong
guesses burn it.
"""
import json
import logging
import secrets
from datetime import datetime
from typing import Optional, Tuple

import redis

from core.config import settings
from models.seller import Seller
from services.email import send_templated_email

logger = logging.getLogger(__name__)

VERIFY_PURPOSE = "verify"
RESET_PURPOSE = "reset"
MAX_ATTEMPTS = 5


class InMemoryRedis:
    """The handful of Redis commands used here, for TESTING runs without a server."""

    def __init__(self):
        self._store = {}
        self._exp = {}

    def _cleanup(self, key):
        exp = self._exp.get(key)
        if exp is not None and datetime.utcnow().timestamp() > exp:
            self._store.pop(key, None)
            self._exp.pop(key, None)

    def setex(self, key, ttl, value):
        self._store[key] = value
        self._exp[key] = datetime.utcnow().timestamp() + int(ttl)

    def get(self, key):
        self._cleanup(key)
        return self._store.get(key)

    def exists(self, key):
        self._cleanup(key)
        return 1 if key in self._store else 0

    def ttl(self, key):
        self._cleanup(key)
        if key not in self._store:
            return -2
        return max(int(self._exp.get(key, 0) - datetime.utcnow().timestamp()), 0)

    def delete(self, *keys):
        for key in keys:
            self._store.pop(key, None)
            self._exp.pop(key, None)

    def flushall(self):
        self._store.clear()
        self._exp.clear()


redis_client = InMemoryRedis() if settings.TESTING else redis.from_url(settings.REDIS_URL, decode_responses=True)


class OtpRateLimited(Exception):
    def __init__(self, retry_after: int):
        super().__init__(f"Please wait {retry_after} seconds before requesting a new code")
        self.retry_after = retry_after


def _otp_key(purpose: str, email: str) -> str:
    return f"otp:{purpose}:{email}"


def _code_key(purpose: str, code: str) -> str:
    return f"otp_code:{purpose}:{code}"


def _last_sent_key(email: str) -> str:
    return f"otp:last:{email}"


def _generate_code() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


def send_code(seller: Seller, purpose: str = VERIFY_PURPOSE) -> str:
    """Store a fresh code for the seller and email it. Raises OtpRateLimited."""
    interval = settings.OTP_RESEND_INTERVAL_SECONDS
    last_key = _last_sent_key(seller.email)
    if interval > 0 and redis_client.exists(last_key):
        ttl = redis_client.ttl(last_key)
        raise OtpRateLimited(ttl if ttl and ttl > 0 else interval)

    code = _generate_code()
    ttl = settings.OTP_TTL_SECONDS
    payload = {
        "code": code,
        "seller_id": seller.id,
        "email": seller.email,
        "created_at": datetime.utcnow().isoformat(),
        "attempts": 0,
    }
    redis_client.setex(_otp_key(purpose, seller.email), ttl, json.dumps(payload))
    # code -> email, so verification links can carry just the code
    redis_client.setex(_code_key(purpose, code), ttl, seller.email)
    if interval > 0:
        redis_client.setex(last_key, interval, "1")

    template = "emails/verification_code.txt" if purpose == VERIFY_PURPOSE else "emails/password_reset_code.txt"
    subject = "Your verification code" if purpose == VERIFY_PURPOSE else "Your password reset code"
    send_templated_email(seller.email, subject, template, {"code": code, "first_name": seller.first_name})
    logger.info("Sent %s code to %s", purpose, seller.email)
    return code


def verify_code(email: str, code: str, purpose: str = VERIFY_PURPOSE) -> bool:
    otp_key = _otp_key(purpose, email)
    raw = redis_client.get(otp_key)
    if not raw:
        return False
    try:
        data = json.loads(raw)
        if data.get("attempts", 0) >= MAX_ATTEMPTS:
            redis_client.delete(otp_key, _code_key(purpose, data["code"]))
            return False
        if data["code"] != code:
            data["attempts"] = data.get("attempts", 0) + 1
            remaining = redis_client.ttl(otp_key)
            redis_client.setex(otp_key, remaining if remaining and remaining > 0 else 1, json.dumps(data))
            return False
    except (json.JSONDecodeError, KeyError):
        redis_client.delete(otp_key)
        return False

    redis_client.delete(otp_key, _code_key(purpose, code))
    return True


def verify_code_without_email(code: str, purpose: str = VERIFY_PURPOSE) -> Tuple[bool, Optional[str]]:
    """Verify using only the code. Returns (ok, email)."""
    email = redis_client.get(_code_key(purpose, code))
    if not email:
        return False, None
    if not verify_code(email, code, purpose):
        return False, None
    return True, email
