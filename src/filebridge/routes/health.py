"""Health check endpoint."""

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route


async def health_check(request: Request) -> JSONResponse:
    """Liveness probe with static identity info."""
    state = request.app.state
    body = {"status": "ok", "service": state.service_name}
    body.update(state.health_details())
    return JSONResponse(body)


health_routes = [
    Route("/health", health_check, methods=["GET"]),
]
