"""
Cafeteria — Domain error → HTTP mapping

Cart problems (409/404/422) stay distinguishable from system problems (503)
so the till can tell "fix your cart" from "try again".
"""
from fastapi import HTTPException, status

from cafeteria.core.errors import (
    CafeteriaError,
    DuplicateUsername,
    InsufficientStock,
    OrderNotFound,
    ProductInUse,
    ProductNotFound,
    StorageFailure,
    UserNotFound,
    ValidationFailure,
)

STATUS_CODES: dict[type[CafeteriaError], int] = {
    ValidationFailure: 422,
    InsufficientStock: status.HTTP_409_CONFLICT,
    ProductInUse: status.HTTP_409_CONFLICT,
    DuplicateUsername: status.HTTP_409_CONFLICT,
    ProductNotFound: status.HTTP_404_NOT_FOUND,
    OrderNotFound: status.HTTP_404_NOT_FOUND,
    UserNotFound: status.HTTP_404_NOT_FOUND,
    StorageFailure: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http(exc: CafeteriaError) -> HTTPException:
    code = STATUS_CODES.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"Retry-After": "1"} if isinstance(exc, StorageFailure) else None
    return HTTPException(status_code=code, detail=exc.to_detail(), headers=headers)
