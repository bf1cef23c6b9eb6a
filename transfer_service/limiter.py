from slowapi import Limiter
from slowapi.util import get_remote_address


class AppLimiter(Limiter):
    """Shared limiter that each app switches on or off through ``app.state.rate_limit_enabled``.

    Hit counters live in the limiter's storage and are shared by every app
    in the process.
    """

    def _check_request_limit(self, request, endpoint_func, in_middleware=True):
        if not getattr(request.app.state, "rate_limit_enabled", True):
            # read back by the route wrapper after the call
            request.state.view_rate_limit = None
            return
        super()._check_request_limit(request, endpoint_func, in_middleware)


limiter = AppLimiter(key_func=get_remote_address)
