"""
Last-resort handler for faults raised by HTTP endpoints.

Full detail goes to the log; the client gets a generic 500 body carrying the
request id so the two can be correlated.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger


async def global_exception_handler(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception as exc:
        request_id = getattr(request.state, "request_id", None)
        logger.exception(f"Unhandled {type(exc).__name__} on {request.method} {request.url.path} [{request_id}]")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "type": type(exc).__name__,
                "request_id": request_id,
            },
        )
