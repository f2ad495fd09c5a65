"""
Request / response logging middleware.

Tags every request with a short id (``request.state.request_id``) and
returns it with the elapsed time as X-Request-ID / X-Response-Time headers.
"""

import time
import uuid
from fastapi import Request
from loguru import logger


async def logging_middleware(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:8]
    request.state.request_id = request_id
    start = time.perf_counter()

    with logger.contextualize(request_id=request_id):
        logger.info(f"→ [{request_id}] {request.method} {request.url.path}")
        response = await call_next(request)
        elapsed = round((time.perf_counter() - start) * 1000, 2)
        logger.info(
            f"← [{request_id}] {request.method} {request.url.path} "
            f"[{response.status_code}] {elapsed}ms"
        )

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time"] = f"{elapsed}ms"
    return response
