from __future__ import annotations

import logging
import os
import secrets
import threading
import time
from typing import Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)

# 0 disables expiry: a code stays valid until verified or overwritten.
OTP_EXP_MIN = int(os.getenv("OTP_EXP_MINUTES", "0"))


def _gen_otp() -> str:
    return f"{secrets.randbelow(1_000_000):06d}"


class OtpRegistry:
    """
    In-memory email -> pending code map.

    At most one code is pending per email. Entries live only as long as the
    process does.
    """

    def __init__(self, *, ttl_seconds: int = 0, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = max(0, int(ttl_seconds))
        self._clock = clock
        self._codes: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._codes)

    def issue(self, email: str) -> str:
        code = _gen_otp()
        expires_at = self._clock() + self.ttl_seconds if self.ttl_seconds else None
        with self._lock:
            self._codes[email] = (code, expires_at)
        return code

    def verify(self, email, code) -> bool:
        if not isinstance(email, str) or not isinstance(code, str):
            return False
        with self._lock:
            stored = self._codes.get(email)
            if not stored:
                return False
            pending, expires_at = stored
            if expires_at is not None and self._clock() > expires_at:
                self._codes.pop(email, None)
                return False
            if not secrets.compare_digest(pending.encode("utf-8"), code.encode("utf-8")):
                return False
            del self._codes[email]
            return True

    def purge_expired(self) -> int:
        if not self.ttl_seconds:
            return 0
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, exp) in self._codes.items() if exp is not None and now > exp]
            for k in expired:
                del self._codes[k]
        if expired:
            logger.info("Purged %d expired OTP(s)", len(expired))
        return len(expired)


otp_registry = OtpRegistry(ttl_seconds=OTP_EXP_MIN * 60)


def get_otp_registry() -> OtpRegistry:
    return otp_registry
