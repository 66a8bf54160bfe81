"""
Purchase request lifecycle: validation, derived totals, authorization and the
single Pending -> Approved / Rejected transition.

Every operation is stateless given (identity, session, notify): the caller's
identity is passed in explicitly, the session belongs to the caller (flush
only, no commit), and notifications are handed to ``notify`` without waiting
for delivery.
"""

import enum
import re
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from purchase_api.errors import Forbidden, InvalidPurchaseRequest, NotFound, Unauthenticated
from purchase_api.models.purchase_request import PurchaseRequest, RequestStatus
from purchase_api.schemas.purchase_request import PurchaseRequestCreate
from purchase_api.services import request_store
from purchase_api.services.auth_service import Identity
from purchase_api.services.notification_service import Notify

logger = structlog.get_logger()

EMAIL_REGEX = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

# Column limits: quantity is a 32-bit INTEGER, total_price is NUMERIC(14, 2)
MAX_QUANTITY = 2_147_483_647
MAX_TOTAL = Decimal("999999999999.99")
CENTS = Decimal("0.01")


class Decision(str, enum.Enum):
    APPROVE = "Approve"
    REJECT = "Reject"

    @property
    def status(self) -> RequestStatus:
        return RequestStatus.APPROVED if self is Decision.APPROVE else RequestStatus.REJECTED

    @property
    def verb(self) -> str:
        return "approved" if self is Decision.APPROVE else "rejected"


def _require_identity(identity: Optional[Identity]) -> Identity:
    if identity is None or not identity.is_complete:
        raise Unauthenticated()
    return identity


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_REGEX.fullmatch(email or ""))


def validate_input(body: PurchaseRequestCreate) -> None:
    """Raise InvalidPurchaseRequest for the first rule the input breaks."""
    if not is_valid_email(body.approver_email):
        raise InvalidPurchaseRequest("Invalid approver email format.")
    if (
        body.quantity <= 0
        or body.unit_price <= 0
        or body.delivery_charges < 0
        or body.tax_amount < 0
    ):
        raise InvalidPurchaseRequest(
            "Invalid input values. Quantity, Unit Price must be greater than zero, "
            "and charges must be non-negative."
        )
    if not body.item_name.strip():
        raise InvalidPurchaseRequest("Item name is required.")
    if body.quantity > MAX_QUANTITY or compute_total(
        body.quantity, body.unit_price, body.delivery_charges, body.tax_amount
    ) > MAX_TOTAL:
        raise InvalidPurchaseRequest("Invalid input values. Quantity or total price is too large.")


def compute_total(
    quantity: int, unit_price: Decimal, delivery_charges: Decimal, tax_amount: Decimal
) -> Decimal:
    return (quantity * unit_price + delivery_charges + tax_amount).quantize(CENTS)


# ---------- CREATE ----------


async def create_request(
    session: AsyncSession,
    identity: Optional[Identity],
    body: PurchaseRequestCreate,
    notify: Notify,
) -> PurchaseRequest:
    identity = _require_identity(identity)
    validate_input(body)

    item_name = body.item_name.strip()
    record = PurchaseRequest(
        requester=identity.display_name,
        requester_email=identity.email,
        item_name=item_name,
        quantity=body.quantity,
        unit_price=body.unit_price.quantize(CENTS),
        delivery_charges=body.delivery_charges.quantize(CENTS),
        tax_amount=body.tax_amount.quantize(CENTS),
        total_price=compute_total(
            body.quantity, body.unit_price, body.delivery_charges, body.tax_amount
        ),
        approver_email=body.approver_email,
        status=RequestStatus.PENDING.value,
    )
    await request_store.insert(session, record)

    notify("pr_created", [identity.email], {"item_name": item_name})
    notify("pr_approval_needed", [body.approver_email], {"item_name": item_name})

    logger.info(
        "pr_created",
        pr_id=str(record.id),
        requester=identity.email,
        approver=body.approver_email,
        total_price=str(record.total_price),
    )
    return record


# ---------- LIST ----------


async def list_mine(
    session: AsyncSession, identity: Optional[Identity]
) -> list[PurchaseRequest]:
    identity = _require_identity(identity)
    return await request_store.find_many(
        session,
        PurchaseRequest.requester == identity.display_name,
        order_by=PurchaseRequest.created_at.desc(),
    )


async def list_pending(
    session: AsyncSession, identity: Optional[Identity]
) -> list[PurchaseRequest]:
    identity = _require_identity(identity)
    return await request_store.find_many(
        session,
        PurchaseRequest.approver_email == identity.email,
        PurchaseRequest.status == RequestStatus.PENDING.value,
        order_by=PurchaseRequest.created_at,
    )


# ---------- DECIDE ----------


async def decide(
    session: AsyncSession,
    identity: Optional[Identity],
    request_id: uuid.UUID,
    decision: Decision,
    notify: Notify,
) -> PurchaseRequest:
    """
    Approve or reject a Pending request addressed to the caller.

    Raises Forbidden when the request is Pending but assigned to someone else,
    NotFound when it does not exist or has already been decided.
    """
    identity = _require_identity(identity)

    record = await request_store.find_one_and_update(
        session,
        PurchaseRequest.id == request_id,
        PurchaseRequest.approver_email == identity.email,
        PurchaseRequest.status == RequestStatus.PENDING.value,
        values={"status": decision.status.value, "decided_at": datetime.utcnow()},
    )
    if record is None:
        pending = await request_store.find_one(
            session,
            PurchaseRequest.id == request_id,
            PurchaseRequest.status == RequestStatus.PENDING.value,
        )
        _raise_decide_failure(pending is not None, identity, decision, str(request_id))

    _notify_decision(record, identity, decision, notify)
    return record


async def decide_by_item_name(
    session: AsyncSession,
    identity: Optional[Identity],
    item_name: str,
    decision: Decision,
    notify: Notify,
) -> PurchaseRequest:
    """Resolve the caller's oldest Pending request for ``item_name`` and decide it by id."""
    identity = _require_identity(identity)
    item_name = item_name.strip()

    own = await request_store.find_one(
        session,
        PurchaseRequest.item_name == item_name,
        PurchaseRequest.approver_email == identity.email,
        PurchaseRequest.status == RequestStatus.PENDING.value,
        order_by=PurchaseRequest.created_at,
    )
    if own is None:
        pending = await request_store.find_one(
            session,
            PurchaseRequest.item_name == item_name,
            PurchaseRequest.status == RequestStatus.PENDING.value,
        )
        _raise_decide_failure(pending is not None, identity, decision, item_name)

    return await decide(session, identity, own.id, decision, notify)


def _raise_decide_failure(
    pending_exists: bool, identity: Identity, decision: Decision, key: str
) -> None:
    if pending_exists:
        logger.warning("pr_decide_forbidden", key=key, approver=identity.email, decision=decision.value)
        raise Forbidden(f"You are not authorized to {decision.value.lower()} this request.")
    logger.info("pr_decide_not_found", key=key, approver=identity.email, decision=decision.value)
    raise NotFound("Purchase request not found or already decided.")


def _notify_decision(
    record: PurchaseRequest, identity: Identity, decision: Decision, notify: Notify
) -> None:
    context = {
        "item_name": record.item_name,
        "decision": decision.status.value,
        "decision_verb": decision.verb,
    }
    notify("pr_decision_confirmation", [identity.email], context)
    notify("pr_decided", [record.requester_email], context)

    logger.info(
        "pr_decided",
        pr_id=str(record.id),
        status=record.status,
        approver=identity.email,
    )
