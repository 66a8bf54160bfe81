"""
Seed script: inserts a handful of demo purchase requests for local development.
Run from the project root: python -m scripts.seed
"""
import asyncio
import sys
import os
import uuid
from decimal import Decimal

# Ensure the project root is on sys.path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import select
from purchase_api.database import AsyncSessionLocal, init_db, close_db
from purchase_api.models.purchase_request import PurchaseRequest, RequestStatus

# ---------- Fixed UUIDs ----------

PR_LAPTOP_ID = uuid.UUID("c0000000-0000-0000-0000-000000000001")
PR_MONITOR_ID = uuid.UUID("c0000000-0000-0000-0000-000000000002")
PR_CHAIRS_ID = uuid.UUID("c0000000-0000-0000-0000-000000000003")

REQUESTER = "Alice Requester"
REQUESTER_EMAIL = "alice@acme.com"
APPROVER_EMAIL = "bob@acme.com"


def _request(pr_id, item_name, quantity, unit_price, delivery, tax, status=RequestStatus.PENDING):
    unit_price, delivery, tax = Decimal(unit_price), Decimal(delivery), Decimal(tax)
    return PurchaseRequest(
        id=pr_id,
        requester=REQUESTER,
        requester_email=REQUESTER_EMAIL,
        item_name=item_name,
        quantity=quantity,
        unit_price=unit_price,
        delivery_charges=delivery,
        tax_amount=tax,
        total_price=quantity * unit_price + delivery + tax,
        approver_email=APPROVER_EMAIL,
        status=status.value,
    )


async def seed():
    await init_db()
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(PurchaseRequest).where(PurchaseRequest.id == PR_LAPTOP_ID))
        if result.scalar_one_or_none():
            print("Seed data already exists. Skipping.")
            return

        db.add_all([
            _request(PR_LAPTOP_ID, "Laptop", 2, "500.00", "20.00", "30.00"),
            _request(PR_MONITOR_ID, "Monitor", 3, "180.00", "15.00", "24.30"),
            _request(PR_CHAIRS_ID, "Office Chair", 6, "95.50", "40.00", "0.00", RequestStatus.APPROVED),
        ])

        await db.commit()
        print("Seed data inserted successfully!")
        print(f"  Requester: {REQUESTER} <{REQUESTER_EMAIL}>")
        print(f"  Approver: {APPROVER_EMAIL}")
        print(f"  Purchase requests: 3 (2 pending)")
    await close_db()


if __name__ == "__main__":
    asyncio.run(seed())
