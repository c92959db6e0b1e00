"""Per-IP rate limiting."""

from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from fastapi import HTTPException, Request, status


EXEMPT_PATHS = {"/health", "/metrics"}


class RateLimiter:
    """Sliding one-minute window of request timestamps per client IP."""

    def __init__(self, requests_per_minute: Optional[int] = None):
        from ..core.config import settings
        self.requests_per_minute = requests_per_minute or settings.RATE_LIMIT_RPM
        self.requests: Dict[str, List[datetime]] = defaultdict(list)

    async def check(self, request: Request) -> None:
        """
        Record the request, or refuse it when the client is over its limit.

        Raises:
            HTTPException: 429 when the limit is exceeded
        """
        if request.url.path in EXEMPT_PATHS:
            return

        client_ip = request.client.host if request.client else "unknown"
        now = datetime.now()

        cutoff = now - timedelta(minutes=1)
        self.requests[client_ip] = [t for t in self.requests[client_ip] if t > cutoff]

        if len(self.requests[client_ip]) >= self.requests_per_minute:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail={
                    "error": "Rate limit exceeded",
                    "message": f"Maximum {self.requests_per_minute} requests per minute allowed",
                    "retry_after": 60,
                },
            )

        self.requests[client_ip].append(now)

    def reset(self) -> None:
        self.requests.clear()


rate_limiter = RateLimiter()
