"""
ASGI middleware for Starlette/FastAPI hosts.

Opens a request scope around every request, runs the user enumeration
check, and turns ``RequestTerminated`` into an empty 403 response.
"""

import logging
from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from fail2ban_redux.core.engine import SecurityLogger
from fail2ban_redux.errors import RequestTerminated

logger = logging.getLogger(__name__)


class Fail2BanMiddleware(BaseHTTPMiddleware):
    """
    Security logging middleware.

    Route handlers reach the same scope through the engine, so hooks such
    as ``engine.login_failed(username)`` see the client address and share
    the XML-RPC failure counter with the rest of the request.
    """

    def __init__(self, app, engine: SecurityLogger):
        super().__init__(app)
        self.engine = engine

    def is_admin(self, path: str) -> bool:
        return path.startswith(tuple(self.engine.config.site.admin_path_prefixes))

    async def dispatch(self, request: Request, call_next: Callable):
        path = request.url.path
        host = request.url.hostname or request.headers.get("host")

        async with self.engine.request(
            remote_addr=request.client.host if request.client else None,
            host=host,
            query_params=dict(request.query_params),
            is_admin=self.is_admin(path),
        ) as context:
            try:
                self.engine.user_enumeration()
                return await call_next(request)
            except RequestTerminated as e:
                logger.info(
                    f"Request {context.request_id} from {context.remote_addr} terminated: {e.reason}"
                )
                return Response(status_code=e.status_code, content=b"")
