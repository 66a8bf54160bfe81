"""
Request store: persistence primitives for purchase requests.

All functions use the caller's session and only flush; the caller owns the
transaction. Any SQLAlchemy error surfaces as StoreFailure.
"""

import uuid
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from purchase_api.errors import StoreFailure
from purchase_api.models.purchase_request import PurchaseRequest

logger = structlog.get_logger()


def _store_failure(op: str, exc: SQLAlchemyError) -> StoreFailure:
    logger.error("store_operation_failed", op=op, error=str(exc), error_type=type(exc).__name__)
    return StoreFailure()


async def insert(session: AsyncSession, record: PurchaseRequest) -> PurchaseRequest:
    try:
        session.add(record)
        await session.flush()
    except SQLAlchemyError as exc:
        raise _store_failure("insert", exc) from exc
    return record


async def find_many(
    session: AsyncSession, *conditions: Any, order_by: Any = None
) -> list[PurchaseRequest]:
    q = select(PurchaseRequest).where(*conditions)
    if order_by is not None:
        q = q.order_by(order_by)
    try:
        result = await session.execute(q)
    except SQLAlchemyError as exc:
        raise _store_failure("find_many", exc) from exc
    return list(result.scalars().all())


async def find_one(
    session: AsyncSession, *conditions: Any, order_by: Any = None
) -> Optional[PurchaseRequest]:
    q = select(PurchaseRequest).where(*conditions)
    if order_by is not None:
        q = q.order_by(order_by)
    try:
        result = await session.execute(q.limit(1))
    except SQLAlchemyError as exc:
        raise _store_failure("find_one", exc) from exc
    return result.scalars().first()


async def find_one_and_update(
    session: AsyncSession, *conditions: Any, values: dict
) -> Optional[PurchaseRequest]:
    """
    Atomic test-and-set: update at most one row matching ``conditions``.

    The predicate and the mutation run as a single UPDATE statement, so of two
    concurrent callers racing on the same row exactly one sees it match.
    Returns the updated record, or None when nothing matched.
    """
    target = (
        select(PurchaseRequest.id)
        .where(*conditions)
        .order_by(PurchaseRequest.created_at)
        .limit(1)
        .correlate(None)
        .scalar_subquery()
    )
    stmt = (
        update(PurchaseRequest)
        .where(PurchaseRequest.id == target, *conditions)
        .values(**values)
        .returning(PurchaseRequest.id)
        .execution_options(synchronize_session=False)
    )
    try:
        result = await session.execute(stmt)
        updated_id: Optional[uuid.UUID] = result.scalar_one_or_none()
        if updated_id is None:
            return None
        return await session.get(PurchaseRequest, updated_id, populate_existing=True)
    except SQLAlchemyError as exc:
        raise _store_failure("find_one_and_update", exc) from exc


async def commit(session: AsyncSession) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        raise _store_failure("commit", exc) from exc
