from decimal import Decimal
from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient


LAPTOP = {
    "itemName": "Laptop",
    "quantity": 2,
    "unitPrice": 500,
    "deliveryCharges": 20,
    "taxAmount": 30,
    "approverEmail": "b@x.com",
}


@pytest.fixture
def sent_emails():
    with patch(
        "purchase_api.services.notification_service.send_email",
        new=AsyncMock(return_value=True),
    ) as mock_send:
        yield mock_send


def _subjects_to(mock_send, email: str) -> list[str]:
    return [c.args[1] for c in mock_send.await_args_list if email in c.args[0]]


@pytest.mark.asyncio
async def test_full_purchase_cycle(
    client: AsyncClient, requester, approver, auth_headers, sent_emails
):
    alice = auth_headers(requester)
    bob = auth_headers(approver)

    # 1. Requester creates the request
    resp = await client.post("/purchase-request", json=LAPTOP, headers=alice)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "Purchase request created"
    new_request = body["newRequest"]
    assert Decimal(new_request["totalPrice"]) == Decimal("1050")
    assert new_request["status"] == "Pending"
    assert new_request["requester"] == "Alice Requester"
    assert new_request["requesterEmail"] == "alice@acme.com"
    request_id = new_request["id"]

    assert _subjects_to(sent_emails, "alice@acme.com") == ["Purchase Request Created"]
    assert _subjects_to(sent_emails, "b@x.com") == ["Approval Needed"]

    # 2. Approver sees it pending
    resp = await client.get("/pending-purchase-requests", headers=bob)
    assert resp.status_code == 200
    assert [pr["id"] for pr in resp.json()] == [request_id]

    # 3. Approver approves (legacy item-name body)
    resp = await client.post("/approve-purchase-request", json={"itemName": "Laptop"}, headers=bob)
    assert resp.status_code == 200
    body = resp.json()
    assert body["message"] == "Purchase request approved"
    assert body["requestToApprove"]["status"] == "Approved"
    assert body["requestToApprove"]["id"] == request_id

    assert "Request Approved" in _subjects_to(sent_emails, "alice@acme.com")
    assert "Purchase Request Approved" in _subjects_to(sent_emails, "b@x.com")

    # 4. Requester sees the decision
    resp = await client.get("/my-purchase-requests", headers=alice)
    assert resp.status_code == 200
    assert [pr["status"] for pr in resp.json()] == ["Approved"]

    # 5. A second decision finds nothing to decide
    resp = await client.post("/approve-purchase-request", json={"itemName": "Laptop"}, headers=bob)
    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "REQUEST_NOT_FOUND"

    resp = await client.get("/pending-purchase-requests", headers=bob)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_reject_by_id(client: AsyncClient, requester, approver, auth_headers, sent_emails):
    resp = await client.post("/purchase-request", json=LAPTOP, headers=auth_headers(requester))
    request_id = resp.json()["newRequest"]["id"]

    resp = await client.post(
        "/reject-purchase-request", json={"id": request_id}, headers=auth_headers(approver)
    )

    assert resp.status_code == 200
    assert resp.json()["message"] == "Purchase request rejected"
    assert resp.json()["requestToReject"]["status"] == "Rejected"
    assert resp.json()["requestToReject"]["decidedAt"] is not None


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/approve-purchase-request", "/reject-purchase-request"])
async def test_wrong_approver_gets_403(
    client: AsyncClient, requester, outsider, auth_headers, sent_emails, path
):
    resp = await client.post("/purchase-request", json=LAPTOP, headers=auth_headers(requester))
    request_id = resp.json()["newRequest"]["id"]

    resp = await client.post(path, json={"id": request_id}, headers=auth_headers(outsider))

    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "NOT_AUTHORIZED_APPROVER"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "overrides,fragment",
    [
        ({"approverEmail": "not-an-email"}, "email"),
        ({"quantity": 0}, "greater than zero"),
        ({"unitPrice": 0}, "greater than zero"),
        ({"deliveryCharges": -5}, "non-negative"),
        ({"taxAmount": -1}, "non-negative"),
    ],
)
async def test_create_validation_returns_400(
    client: AsyncClient, requester, auth_headers, sent_emails, overrides, fragment
):
    headers = auth_headers(requester)

    resp = await client.post("/purchase-request", json={**LAPTOP, **overrides}, headers=headers)

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    assert fragment in resp.json()["error"]["message"]
    sent_emails.assert_not_awaited()

    resp = await client.get("/my-purchase-requests", headers=headers)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_malformed_body_returns_400(client: AsyncClient, requester, auth_headers):
    resp = await client.post(
        "/purchase-request", json={"itemName": "Laptop", "quantity": "lots"}, headers=auth_headers(requester)
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_decision_body_needs_a_key(client: AsyncClient, approver, auth_headers):
    resp = await client.post("/approve-purchase-request", json={}, headers=auth_headers(approver))
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_my_requests_empty_list(client: AsyncClient, requester, auth_headers):
    resp = await client.get("/my-purchase-requests", headers=auth_headers(requester))
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method,path",
    [
        ("GET", "/my-purchase-requests"),
        ("GET", "/pending-purchase-requests"),
        ("POST", "/purchase-request"),
        ("POST", "/approve-purchase-request"),
        ("POST", "/reject-purchase-request"),
        ("GET", "/user"),
    ],
)
async def test_endpoints_require_session(client: AsyncClient, method, path):
    resp = await client.request(method, path, json=LAPTOP if method == "POST" else None)
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "AUTH_REQUIRED"


@pytest.mark.asyncio
async def test_invalid_token_is_401(client: AsyncClient):
    resp = await client.get("/my-purchase-requests", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["checks"]["db"] == "ok"


@pytest.mark.asyncio
async def test_request_id_header_is_echoed(client: AsyncClient):
    resp = await client.get("/health", headers={"X-Request-ID": "req-42"})
    assert resp.headers["X-Request-ID"] == "req-42"


@pytest.mark.asyncio
async def test_oversized_quantity_is_rejected_before_storing(
    client: AsyncClient, requester, auth_headers, sent_emails
):
    headers = auth_headers(requester)

    resp = await client.post(
        "/purchase-request", json={**LAPTOP, "quantity": 3_000_000_000}, headers=headers
    )

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
    resp = await client.get("/my-purchase-requests", headers=headers)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_created_and_listed_money_fields_match(
    client: AsyncClient, requester, auth_headers, sent_emails
):
    headers = auth_headers(requester)

    created = (await client.post("/purchase-request", json=LAPTOP, headers=headers)).json()["newRequest"]
    listed = (await client.get("/my-purchase-requests", headers=headers)).json()[0]

    assert created["totalPrice"] == listed["totalPrice"] == "1050.00"
    for field in ("unitPrice", "deliveryCharges", "taxAmount"):
        assert created[field] == listed[field]
