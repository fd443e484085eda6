from unittest.mock import AsyncMock

import httpx
import pytest
from httpx import ASGITransport

from staydata.services.composite import CompositeClient


@pytest.fixture
def mock_env(monkeypatch):
    monkeypatch.setenv("STAYDATA_RATE_LIMIT_PER_SECOND", "0")
    monkeypatch.setenv("STAYDATA_RETRY_DELAY_SECS", "0")
    monkeypatch.setenv("STAYDATA_LOG_LEVEL", "DEBUG")


@pytest.fixture
async def client(mock_env):
    from staydata.main import app, lifespan

    async with lifespan(app):
        async with httpx.AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as c:
            yield c


@pytest.fixture
def listing_client(client):
    """Swap the backend built by the lifespan for a mock."""
    from staydata.main import app

    mock = AsyncMock(spec=CompositeClient)
    app.state.listing_client = mock
    return mock
