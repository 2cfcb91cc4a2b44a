# app/core/errors.py
"""
Domain error taxonomy.

Every error is an HTTPException subclass, so services raise them the same
way they raise HTTPException and FastAPI renders {"detail": ...} with the
matching status code. Routers never translate them.

  ValidationError    400  bad input rejected before any side effect
  AuthenticityError  400  payment callback signature mismatch
  ForbiddenError     403  authenticated but not allowed
  NotFoundError      404  referenced entity does not exist
  ConflictError      409  state conflict (slot taken, illegal transition)
  UpstreamError      502  payment gateway unreachable or rejected the call
"""

from typing import Any

from fastapi import HTTPException, status


class ShopError(HTTPException):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: Any = None):
        super().__init__(status_code=self.status_code, detail=detail)


class ValidationError(ShopError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticityError(ShopError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: Any = "Payment verification failed"):
        super().__init__(detail)


class ForbiddenError(ShopError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ShopError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ShopError):
    status_code = status.HTTP_409_CONFLICT


class SlotUnavailable(ConflictError):
    """Raised when the requested measurement slot already has an active booking."""

    def __init__(self, slot_date, time_range: str):
        self.slot_date = slot_date
        self.time_range = time_range
        super().__init__(
            f"Measurement slot {slot_date.isoformat()} ({time_range}) is not available"
        )


class UpstreamError(ShopError):
    status_code = status.HTTP_502_BAD_GATEWAY
