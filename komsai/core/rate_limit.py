"""SlowAPI limiter keyed on the caller's IP, plus the limit strings the routes use."""
from fastapi import Request
from slowapi import Limiter

from .config import settings


def client_ip(request: Request) -> str:
    # First X-Forwarded-For hop is the browser when running behind the hosting proxy
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded.split(",")[0].strip()
    if first_hop:
        return first_hop
    return request.client.host if request.client else "unknown"


LOGIN_LIMIT = f"{settings.rate_limit_per_minute}/minute"
# Operator sign-up is rare; hourly cap on top of the per-minute one
REGISTER_LIMIT = f"{settings.rate_limit_register_per_minute}/minute;100/hour"

limiter = Limiter(key_func=client_ip, strategy="moving-window")
