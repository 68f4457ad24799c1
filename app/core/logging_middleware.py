# app/core/logging_middleware.py
from fastapi import Request
from app.core.logger import logger
import time

def _request_label(request: Request) -> str:
    """Method, path and, once routed, the snag/photo the request was about"""
    label = f"{request.method} {request.url.path}"
    path_params = request.scope.get("path_params") or {}
    ids = [f"{key}={path_params[key]}" for key in ("snag_id", "photo_id") if key in path_params]
    if ids:
        label += f" [{' '.join(ids)}]"
    return label

async def log_requests(request: Request, call_next):
    """Log every request/response pair"""

    start_time = time.time()

    logger.debug(f"-> {request.method} {request.url.path}")

    try:
        response = await call_next(request)

        process_time = (time.time() - start_time) * 1000  # ms

        message = (
            f"<- {_request_label(request)} "
            f"- Status: {response.status_code} "
            f"- Time: {process_time:.2f}ms"
        )
        if response.headers.get("content-type") == "image/jpeg":
            message += f" - Photo: {response.headers.get('content-length', '?')} bytes"

        if response.status_code >= 500:
            logger.error(message)
        elif response.status_code >= 400:
            logger.warning(message)
        else:
            logger.info(message)

        return response

    except Exception as e:
        process_time = (time.time() - start_time) * 1000

        logger.error(
            f"!! {_request_label(request)} "
            f"- Error: {str(e)} "
            f"- Time: {process_time:.2f}ms"
        )
        logger.exception("Exception details:")

        raise
