from typing import Callable

from fastapi import Request, Response

from .logging_utils import logger


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS, PATCH",
    "Access-Control-Allow-Headers": "*",
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Max-Age": "86400",
}


async def cors_middleware(request: Request, call_next: Callable) -> Response:
    """Attach permissive CORS headers; answer preflight without routing."""
    if request.method == "OPTIONS":
        logger.debug("preflight %s", request.url.path)
        return Response(status_code=200, headers=CORS_HEADERS)

    logger.debug("%s %s", request.method, request.url.path)
    response = await call_next(request)
    response.headers.update(CORS_HEADERS)
    return response
