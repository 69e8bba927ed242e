"""
Gestionnaires d’exceptions.
- Erreurs « commerce » -> JSON {detail, code} (+ fields / orderId selon le cas) avec le statut HTTP associé.
- HTTPException -> JSON standard {detail}.
"""
import logging
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from storefront.errors import (
    CheckoutStepError,
    CommerceError,
    OrderCreationFailed,
    OrderPlacementInProgress,
    PaymentInitFailed,
    StockUnavailable,
    ValidationError,
)

logger = logging.getLogger(__name__)

# ordre significatif: sous-classes avant classes parentes
STATUS_BY_ERROR = (
    (StockUnavailable, 409),
    (ValidationError, 422),
    (CheckoutStepError, 409),
    (OrderPlacementInProgress, 409),
    (OrderCreationFailed, 502),
    (PaymentInitFailed, 502),
)

def status_for(exc: CommerceError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 400

def error_body(exc: CommerceError) -> dict:
    body = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, ValidationError) and exc.fields:
        body["fields"] = exc.fields
    if isinstance(exc, PaymentInitFailed) and exc.order_id:
        body["orderId"] = exc.order_id
    return body

def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(CommerceError)
    async def commerce_error(request: Request, exc: CommerceError):
        status = status_for(exc)
        if status >= 500:
            logger.warning("commerce error path=%s code=%s detail=%s", request.url.path, exc.code, exc.message)
        return JSONResponse(status_code=status, content=error_body(exc))

    @app.exception_handler(HTTPException)
    async def http_error(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=getattr(exc, "headers", None))
