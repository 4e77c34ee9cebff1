from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from order_api.db.session import ping

router = APIRouter(tags=["health"])


@router.get("/health", response_class=PlainTextResponse)
def health(request: Request):
    if ping(request.app.state.engine):
        return PlainTextResponse("Healthy")
    return PlainTextResponse("Unhealthy", status_code=503)
