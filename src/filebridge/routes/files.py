"""REST endpoints: one POST per capability.

Body is the capability's argument map. Replies mirror the outcome:
    200 {"status": "ok", ...}
    500 {"status": "error", "error": "..."}  (backend failure)
    400 {"status": "error", "error": "..."}  (unparseable body)
"""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from ..catalog import list_capabilities

logger = logging.getLogger(__name__)


async def invoke_capability(request: Request, name: str) -> JSONResponse:
    """Run one capability with the JSON body as its arguments."""
    invoker = request.app.state.invoker

    raw = await request.body()
    try:
        arguments = json.loads(raw) if raw.strip() else {}
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return JSONResponse(
            {"status": "error", "error": f"Invalid JSON body: {e}"}, status_code=400
        )

    result = await invoker.invoke(name, arguments)
    status_code = 200 if result.success else 500
    return JSONResponse(result.to_payload(), status_code=status_code)


def _endpoint(name: str) -> Callable[[Request], Awaitable[JSONResponse]]:
    async def endpoint(request: Request) -> JSONResponse:
        return await invoke_capability(request, name)

    endpoint.__name__ = name
    return endpoint


file_routes = [
    Route(f"/{descriptor.name}", _endpoint(descriptor.name), methods=["POST"])
    for descriptor in list_capabilities()
]
