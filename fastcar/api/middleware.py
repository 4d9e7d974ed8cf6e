"""Rate limiting shared by every HTTP route.

Each app gets its own ``Limiter`` built from its ``Settings``; the
``SlowAPIMiddleware`` applies ``rate_limit`` as the default limit to every
HTTP route except those passed in *exempt*.  Websocket traffic is not
rate limited.
"""

from typing import Callable, Iterable

from fastapi import FastAPI
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from fastcar.config import Settings


def install_rate_limiting(
    app: FastAPI, config: Settings, exempt: Iterable[Callable] = ()
) -> Limiter:
    limiter = Limiter(key_func=get_remote_address, default_limits=[config.rate_limit])
    for endpoint in exempt:
        limiter.exempt(endpoint)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)
    return limiter
