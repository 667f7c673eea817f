"""Exception handlers mapping checkout errors onto HTTP responses."""

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from checkout.errors import CheckoutError

logger = structlog.get_logger(__name__)


async def checkout_error_handler(request: Request, exc: CheckoutError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("checkout_request_failed", path=request.url.path, error=exc.code, status=exc.status_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_checkout_exception_handlers(app: FastAPI) -> None:
    """Protean ValidationError/ObjectNotFoundError → 400/404, CheckoutError → its own status."""
    register_exception_handlers(app)
    app.add_exception_handler(CheckoutError, checkout_error_handler)
