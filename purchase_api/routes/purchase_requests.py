from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from purchase_api.database import get_db
from purchase_api.middleware.auth import get_current_identity
from purchase_api.models.purchase_request import PurchaseRequest
from purchase_api.schemas.purchase_request import (
    ApprovedResponse,
    CreatedResponse,
    DecisionRequest,
    PurchaseRequestCreate,
    PurchaseRequestList,
    PurchaseRequestResponse,
    RejectedResponse,
)
from purchase_api.services import purchase_service, request_store
from purchase_api.services.auth_service import Identity
from purchase_api.services.notification_service import background_notifier
from purchase_api.services.purchase_service import Decision

logger = structlog.get_logger()
router = APIRouter()


def _to_response(pr: PurchaseRequest) -> PurchaseRequestResponse:
    return PurchaseRequestResponse.model_validate(pr)


async def _decide(
    body: DecisionRequest,
    decision: Decision,
    background_tasks: BackgroundTasks,
    identity: Identity,
    db: AsyncSession,
) -> PurchaseRequest:
    notify = background_notifier(background_tasks)
    if body.id is not None:
        pr = await purchase_service.decide(db, identity, body.id, decision, notify)
    else:
        pr = await purchase_service.decide_by_item_name(
            db, identity, body.item_name, decision, notify
        )
    await request_store.commit(db)
    return pr


# ---------- LIST ----------


@router.get("/my-purchase-requests", response_model=PurchaseRequestList)
async def list_my_purchase_requests(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    prs = await purchase_service.list_mine(db, identity)
    logger.info("pr_list_mine", count=len(prs))
    return [_to_response(pr) for pr in prs]


@router.get("/pending-purchase-requests", response_model=PurchaseRequestList)
async def list_pending_purchase_requests(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    prs = await purchase_service.list_pending(db, identity)
    logger.info("pr_list_pending", count=len(prs))
    return [_to_response(pr) for pr in prs]


# ---------- CREATE ----------


@router.post(
    "/purchase-request",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_purchase_request(
    body: PurchaseRequestCreate,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    pr = await purchase_service.create_request(
        db, identity, body, background_notifier(background_tasks)
    )
    await request_store.commit(db)
    return CreatedResponse(message="Purchase request created", new_request=_to_response(pr))


# ---------- APPROVE / REJECT ----------


@router.post("/approve-purchase-request", response_model=ApprovedResponse)
async def approve_purchase_request(
    body: DecisionRequest,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    pr = await _decide(body, Decision.APPROVE, background_tasks, identity, db)
    return ApprovedResponse(
        message="Purchase request approved", request_to_approve=_to_response(pr)
    )


@router.post("/reject-purchase-request", response_model=RejectedResponse)
async def reject_purchase_request(
    body: DecisionRequest,
    background_tasks: BackgroundTasks,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    pr = await _decide(body, Decision.REJECT, background_tasks, identity, db)
    return RejectedResponse(
        message="Purchase request rejected", request_to_reject=_to_response(pr)
    )
