"""
Unit tests for application startup and shutdown in purchase_api/main.py.
"""

from unittest.mock import AsyncMock, patch

import pytest

from purchase_api.main import app, lifespan
from purchase_api.services import email_service, identity_provider


@pytest.mark.asyncio
async def test_shutdown_closes_every_outbound_client():
    brevo_client = email_service.get_http_client()
    google_client = identity_provider.get_http_client()

    with patch("purchase_api.main.setup_logging"), patch(
        "purchase_api.main.init_db", new=AsyncMock()
    ) as init_db, patch("purchase_api.main.close_db", new=AsyncMock()) as close_db:
        async with lifespan(app):
            init_db.assert_awaited_once()

    close_db.assert_awaited_once()
    assert brevo_client.is_closed
    assert google_client.is_closed
    assert email_service._http_client is None
    assert identity_provider._http_client is None
