import logging
from collections.abc import Awaitable, Callable

from fastapi import Request, status
from fastapi.responses import JSONResponse, Response

from posttags.exceptions import ReconciliationError

logger = logging.getLogger(__name__)


def _envelope(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message},
            "request_id": getattr(request.state, "request_id", None),
        },
    )


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except ReconciliationError as exc:
        if exc.retryable:
            logger.warning("Storage unavailable: %s", exc)
            return _envelope(
                request,
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "storage_unavailable",
                "Storage is temporarily unavailable, retry the request",
            )
        logger.exception("Reconciliation failed")
        return _envelope(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "reconciliation_failed",
            "Derived tag state is inconsistent",
        )
    except Exception:
        logger.exception("Unhandled exception")
        return _envelope(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "internal_error",
            "An unexpected error occurred",
        )
