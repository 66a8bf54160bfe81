"""
Unit tests for purchase_api/services/request_store.py

Tests: conditional update semantics against SQLite, and StoreFailure
wrapping with a mocked session (no database).
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from purchase_api.errors import StoreFailure
from purchase_api.models.purchase_request import PurchaseRequest
from purchase_api.services import request_store


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _record(item_name: str = "Laptop", approver_email: str = "b@x.com") -> PurchaseRequest:
    return PurchaseRequest(
        requester="Alice Requester",
        requester_email="alice@acme.com",
        item_name=item_name,
        quantity=1,
        unit_price=Decimal("10"),
        delivery_charges=Decimal("0"),
        tax_amount=Decimal("0"),
        total_price=Decimal("10"),
        approver_email=approver_email,
        status="Pending",
    )


def _failing_session() -> AsyncMock:
    session = AsyncMock()
    session.add = MagicMock()
    session.execute.side_effect = OperationalError("SELECT", {}, Exception("db down"))
    session.flush.side_effect = OperationalError("INSERT", {}, Exception("db down"))
    return session


# ---------------------------------------------------------------------------
# find_one_and_update
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_find_one_and_update_applies_patch_when_predicate_matches(db_session):
    record = await request_store.insert(db_session, _record())

    updated = await request_store.find_one_and_update(
        db_session,
        PurchaseRequest.id == record.id,
        PurchaseRequest.status == "Pending",
        values={"status": "Approved"},
    )

    assert updated is not None
    assert updated.id == record.id
    assert updated.status == "Approved"


@pytest.mark.asyncio
async def test_find_one_and_update_returns_none_when_predicate_fails(db_session):
    record = await request_store.insert(db_session, _record())

    updated = await request_store.find_one_and_update(
        db_session,
        PurchaseRequest.id == record.id,
        PurchaseRequest.approver_email == "someone@else.com",
        values={"status": "Approved"},
    )

    assert updated is None
    reloaded = await request_store.find_one(db_session, PurchaseRequest.id == record.id)
    assert reloaded.status == "Pending"


@pytest.mark.asyncio
async def test_find_one_and_update_touches_a_single_row(db_session):
    await request_store.insert(db_session, _record())
    await request_store.insert(db_session, _record())

    updated = await request_store.find_one_and_update(
        db_session,
        PurchaseRequest.item_name == "Laptop",
        PurchaseRequest.status == "Pending",
        values={"status": "Rejected"},
    )

    assert updated is not None
    rejected = await request_store.find_many(db_session, PurchaseRequest.status == "Rejected")
    pending = await request_store.find_many(db_session, PurchaseRequest.status == "Pending")
    assert len(rejected) == 1
    assert len(pending) == 1


# ---------------------------------------------------------------------------
# StoreFailure wrapping
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_insert_wraps_database_errors():
    with pytest.raises(StoreFailure):
        await request_store.insert(_failing_session(), _record())


@pytest.mark.asyncio
async def test_queries_wrap_database_errors():
    session = _failing_session()
    with pytest.raises(StoreFailure):
        await request_store.find_many(session)
    with pytest.raises(StoreFailure):
        await request_store.find_one(session, PurchaseRequest.item_name == "Laptop")
    with pytest.raises(StoreFailure):
        await request_store.find_one_and_update(
            session, PurchaseRequest.item_name == "Laptop", values={"status": "Approved"}
        )


@pytest.mark.asyncio
async def test_commit_rolls_back_and_wraps_errors():
    session = AsyncMock()
    session.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk full"))

    with pytest.raises(StoreFailure):
        await request_store.commit(session)
    session.rollback.assert_awaited_once()
