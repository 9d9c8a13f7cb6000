"""
Request dependencies: storage handle, caller identity and rate limits.

Identity is established upstream (session/OAuth layer) and forwarded in the
``X-User-Id`` header.
"""
from typing import Optional

from fastapi import Depends, Header, Request
from limits import RateLimitItemPerMinute
from limits.storage import MemoryStorage
from limits.strategies import FixedWindowRateLimiter

from core.config import ADMIN_USER_IDS, ANALYSIS_RATE_LIMIT, ANALYSIS_RATE_WINDOW_MINUTES
from core.exceptions import AuthenticationError, ForbiddenError, RateLimitError
from core.storage import Storage, storage


def get_storage() -> Storage:
    return storage


def get_optional_user_id(x_user_id: Optional[str] = Header(None)) -> Optional[str]:
    if x_user_id and x_user_id.strip():
        return x_user_id.strip()
    return None


def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    if not user_id:
        raise AuthenticationError("Unauthorized")
    return user_id


def require_admin(user_id: str = Depends(get_current_user_id)) -> str:
    if user_id not in ADMIN_USER_IDS:
        raise ForbiddenError("Admin access required")
    return user_id


class AnalysisRateLimit:
    """
    Fixed-window limit on video analysis requests.

    Keyed by user id, or by client address for anonymous callers. Every
    request counts, including ones that later fail.
    """

    def __init__(self, amount: int = ANALYSIS_RATE_LIMIT, window_minutes: int = ANALYSIS_RATE_WINDOW_MINUTES):
        self.item = RateLimitItemPerMinute(amount, window_minutes)
        self.window_minutes = window_minutes
        self.reset()

    def reset(self):
        self.limiter = FixedWindowRateLimiter(MemoryStorage())

    def __call__(self, request: Request, user_id: Optional[str] = Depends(get_optional_user_id)):
        key = user_id or (request.client.host if request.client else "unknown")
        if not self.limiter.hit(self.item, "video-analysis", key):
            raise RateLimitError(
                "Too many video analysis requests. "
                f"Please wait {self.window_minutes} minutes before trying again.",
                retry_after=f"{self.window_minutes} minutes",
            )


analysis_rate_limit = AnalysisRateLimit()
