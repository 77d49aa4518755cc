# storefront/services/otp_service.py
import hmac
import json
import secrets
from datetime import datetime, timedelta, timezone

import redis

from storefront.services.notification_service import NotificationService
from storefront.utils.retry import redis_retry
from storefront.utils.settings import REDIS_URL, OTP_TTL_SECONDS
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class OtpService:
    """
    One-time codes kept in redis under otp:<phone> as {code, expires_at}.
    Expiry is checked on read, the redis TTL only cleans up afterwards.
    """

    def __init__(self, client: redis.Redis | None = None, ttl: int = OTP_TTL_SECONDS):
        self.redis = client or redis.Redis.from_url(REDIS_URL, decode_responses=True)
        self.ttl = ttl
        self.notifications = NotificationService()

    @staticmethod
    def _key(phone_number: str) -> str:
        return f"otp:{phone_number}"

    @redis_retry()
    def _store(self, phone_number: str, code: str, expires_at: datetime):
        self.redis.set(
            self._key(phone_number),
            json.dumps({"code": code, "expires_at": expires_at.isoformat()}),
            ex=self.ttl,
        )

    @redis_retry()
    def _load(self, phone_number: str) -> dict | None:
        raw = self.redis.get(self._key(phone_number))
        return json.loads(raw) if raw else None

    @redis_retry()
    def _drop(self, phone_number: str):
        self.redis.delete(self._key(phone_number))

    def send_otp(self, phone_number: str) -> datetime:
        code = f"{secrets.randbelow(900000) + 100000}"
        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self.ttl)

        self._store(phone_number, code, expires_at)
        self.notifications.send_otp(phone_number, code)

        logger.info(f"OTP issued for {phone_number}, valid until {expires_at.isoformat()}")
        return expires_at

    def verify_otp(self, phone_number: str, code: str) -> bool:
        entry = self._load(phone_number)
        if not entry:
            return False

        if datetime.fromisoformat(entry["expires_at"]) <= datetime.now(timezone.utc):
            logger.info(f"OTP for {phone_number} expired")
            self._drop(phone_number)
            return False

        if not hmac.compare_digest(entry["code"], code):
            return False

        #single use
        self._drop(phone_number)
        return True
