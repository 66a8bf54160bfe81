import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PurchaseRequestCreate(CamelModel):
    """Body of POST /purchase-request. Range checks live in the lifecycle service."""

    item_name: str = Field(..., max_length=255)
    quantity: int
    unit_price: Decimal = Field(..., max_digits=12, decimal_places=2)
    delivery_charges: Decimal = Field(..., max_digits=12, decimal_places=2)
    tax_amount: Decimal = Field(..., max_digits=12, decimal_places=2)
    approver_email: str = Field(..., max_length=255)


class DecisionRequest(CamelModel):
    """Identifies the request to decide, by id or (legacy clients) by item name."""

    id: Optional[uuid.UUID] = None
    item_name: Optional[str] = None

    @model_validator(mode="after")
    def require_key(self):
        if self.id is None and not (self.item_name and self.item_name.strip()):
            raise ValueError("Either id or itemName is required")
        return self


class PurchaseRequestResponse(CamelModel):
    id: uuid.UUID
    requester: str
    requester_email: str
    item_name: str
    quantity: int
    unit_price: Decimal
    delivery_charges: Decimal
    tax_amount: Decimal
    total_price: Decimal
    approver_email: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    decided_at: Optional[datetime] = None

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, from_attributes=True
    )


class CreatedResponse(CamelModel):
    message: str
    new_request: PurchaseRequestResponse


class ApprovedResponse(CamelModel):
    message: str
    request_to_approve: PurchaseRequestResponse


class RejectedResponse(CamelModel):
    message: str
    request_to_reject: PurchaseRequestResponse


PurchaseRequestList = List[PurchaseRequestResponse]
