"""Error taxonomy for the purchase request workflow.

Every error carries the HTTP status and machine code it renders with, so the
global handlers in ``purchase_api.main`` can emit the structured envelope
``{"error": {"code": "...", "message": "..."}}``.
"""

from typing import Optional

from fastapi import status


class PurchaseAppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": {"code": self.code, "message": self.message}}


class Unauthenticated(PurchaseAppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_REQUIRED"
    default_message = "Unauthorized"


class InvalidPurchaseRequest(PurchaseAppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    default_message = "Invalid purchase request"


class Forbidden(PurchaseAppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "NOT_AUTHORIZED_APPROVER"
    default_message = "You are not authorized to decide this request."


class NotFound(PurchaseAppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "REQUEST_NOT_FOUND"
    default_message = "Purchase request not found or already decided."


class StoreFailure(PurchaseAppError):
    """Persistence layer error. The message stays opaque; the cause is logged."""

    code = "STORE_FAILURE"
    default_message = "Error accessing purchase requests"
