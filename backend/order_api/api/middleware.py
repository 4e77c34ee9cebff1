from starlette.datastructures import URL
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send


class HTTPSRedirectMiddleware:
    """
    Redirect plain-HTTP requests to ``https_port``.

    Paths in ``exempt_paths`` (the health probe) are always served over the
    scheme they arrived on.
    """

    def __init__(self, app: ASGIApp, https_port: int, exempt_paths=("/health",)):
        self.app = app
        self.https_port = https_port
        self.exempt_paths = frozenset(exempt_paths)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] in ("http", "websocket")
            and scope["scheme"] in ("http", "ws")
            and scope["path"] not in self.exempt_paths
        ):
            url = URL(scope=scope)
            scheme = {"http": "https", "ws": "wss"}[url.scheme]
            netloc = url.hostname
            if self.https_port != 443:
                netloc = f"{netloc}:{self.https_port}"
            response = RedirectResponse(url.replace(scheme=scheme, netloc=netloc), status_code=307)
            await response(scope, receive, send)
        else:
            await self.app(scope, receive, send)
