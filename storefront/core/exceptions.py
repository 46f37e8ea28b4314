from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse


class AppError(Exception):
    """Base application error with consistent schema."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(AppError):
    def __init__(self, message: str = "Validation error", code: str = "VALIDATION_ERROR", details: dict[str, Any] | None = None):
        super().__init__(message, code=code, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class InvalidQuantityError(ValidationError):
    def __init__(self, product_id: str, product_name: str, quantity: int, stock: int):
        super().__init__(
            f"Invalid quantity for {product_name}",
            code="INVALID_QUANTITY",
            details={"product_id": product_id, "quantity": quantity, "stock": stock},
        )


class NotFoundError(AppError):
    def __init__(self, message: str = "Not found", code: str = "NOT_FOUND", status_code: int = status.HTTP_404_NOT_FOUND):
        super().__init__(message, code=code, status_code=status_code)


class ProductNotFoundError(NotFoundError):
    """Unknown product referenced by a checkout request; a client input error there."""

    def __init__(self, product_id: str):
        super().__init__(
            f"Product {product_id} not found",
            code="PRODUCT_NOT_FOUND",
            status_code=status.HTTP_400_BAD_REQUEST,
        )
        self.details = {"product_id": product_id}


class GatewayConfigurationError(AppError):
    """Gateway secrets missing: an operator error, not a user error."""

    def __init__(self, message: str = "Payment gateway not configured. Please contact support."):
        super().__init__(message, code="GATEWAY_NOT_CONFIGURED", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class PersistenceError(AppError):
    def __init__(self, message: str = "Order store unavailable"):
        super().__init__(message, code="PERSISTENCE_ERROR", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


class MalformedCallback(Exception):
    """Gateway callback missing a field required to correlate it with an order."""

    def __init__(self, missing: list[str]):
        self.missing = missing
        super().__init__(f"Missing callback fields: {', '.join(missing)}")


class VerificationFailure(Exception):
    """Callback failed signature or amount verification. Never surfaces as an HTTP error."""

    def __init__(self, reason: str, stored_tag: str):
        self.reason = reason
        self.stored_tag = stored_tag
        super().__init__(reason)


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    body = {
        "error": {
            "message": exc.message,
            "code": exc.code,
            "details": exc.details,
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=exc.status_code, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    from storefront.core.logging import get_logger
    log = get_logger(__name__)
    if exc.status_code >= 500:
        log.error("app_error", code=exc.code, message=exc.message, path=request.url.path)
    else:
        log.info("client_error", code=exc.code, message=exc.message, path=request.url.path)
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    body = {
        "error": {
            "message": "Invalid order data",
            "code": "VALIDATION_ERROR",
            "details": {"errors": jsonable_encoder(exc.errors())},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=body,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from storefront.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = {
        "error": {
            "message": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
