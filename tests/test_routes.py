from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from conftest import make_collection
from starter_pack_explorer.config import settings
from starter_pack_explorer.main import app
from starter_pack_explorer.routes.dependencies import get_database, get_search_service
from starter_pack_explorer.services.exceptions import StoreTimeoutError


@pytest.fixture
def fake_db():
    db = SimpleNamespace(packs=make_collection(), users=make_collection())
    app.dependency_overrides[get_database] = lambda: db
    yield db
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client():
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client


@pytest.mark.asyncio
async def test_search_envelope(client, fake_db):
    fake_db.users = make_collection(
        count=15,
        aggregate=[{"did": f"did:plc:{i}", "handle": f"alice{i}.bsky.social"} for i in range(10)],
    )
    fake_db.packs = make_collection(find=[])

    response = await client.get(
        "/api/search", params={"q": "alice", "type": "users", "sortBy": "followers", "sortOrder": "desc"}
    )

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 15
    assert body["totalPages"] == 2
    assert body["itemsPerPage"] == 10
    assert len(body["items"]) == 10


@pytest.mark.asyncio
async def test_search_without_query_is_400(client, fake_db):
    response = await client.get("/api/search")

    assert response.status_code == 400
    assert response.json() == {"error": "Search query is required", "details": None}


@pytest.mark.asyncio
async def test_search_invalid_page_falls_back_to_first(client, fake_db):
    fake_db.packs = make_collection(count=0, aggregate=[])

    response = await client.get("/api/search", params={"q": "cats", "page": "-4"})

    assert response.status_code == 200
    assert response.json()["page"] == 1
    assert response.json()["totalPages"] == 0


@pytest.mark.asyncio
async def test_pack_not_found_is_404(client, fake_db):
    response = await client.get("/api/pack/nope")

    assert response.status_code == 404
    assert response.json()["error"] == "Pack not found"


@pytest.mark.asyncio
async def test_pack_detail(client, fake_db, pack_docs, user_docs):
    fake_db.packs = make_collection(find_one=pack_docs["dogs"])
    fake_db.users = make_collection(find=[user_docs["did:plc:bob"]])

    response = await client.get("/api/pack/dogs")

    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Dog People"
    assert body["deleted"] is True
    assert body["creator_details"]["did"] == "did:plc:bob"


@pytest.mark.asyncio
async def test_pack_labels(client, fake_db, pack_docs):
    fake_db.packs = make_collection(find=[pack_docs["cats"]])

    response = await client.get("/api/packs", params={"ids": "cats,gone"})

    assert response.status_code == 200
    assert response.json() == {"cats": {"name": "Cat People", "creator": "alice.bsky.social"}}


@pytest.mark.asyncio
async def test_pack_labels_require_ids(client, fake_db):
    response = await client.get("/api/packs")

    assert response.status_code == 400
    assert response.json()["error"] == "Pack IDs are required"


@pytest.mark.asyncio
async def test_user_not_found_is_404(client, fake_db):
    response = await client.get("/api/user/did:plc:nobody")

    assert response.status_code == 404
    assert response.json() == {"error": "User not found", "details": None}


@pytest.mark.asyncio
async def test_user_detail_include_deleted(client, fake_db, pack_docs, user_docs):
    fake_db.users = make_collection(find_one=user_docs["did:plc:bob"])
    fake_db.packs = make_collection(find=[pack_docs["cats"], pack_docs["dogs"]])

    response = await client.get("/api/user/did:plc:bob", params={"includeDeleted": "true"})

    assert response.status_code == 200
    assert [pack["name"] for pack in response.json()["member_packs"]] == ["Cat People", "Dog People"]
    assert "$and" not in fake_db.packs.find.call_args[0][0]


@pytest.mark.asyncio
async def test_bad_parameter_type_is_400(client, fake_db):
    response = await client.get("/api/user/did:plc:bob", params={"includeDeleted": "maybe"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request parameters"


@pytest.mark.asyncio
async def test_stats(client, fake_db):
    fake_db.packs = make_collection(count=2, aggregate=[{"_id": None, "avgSize": 2.5}])
    fake_db.users = make_collection(count=9)

    response = await client.get("/api/stats")

    assert response.status_code == 200
    body = response.json()
    assert (body["total_packs"], body["total_users"], body["avg_pack_size"]) == (2, 9, 3)
    assert body["updated_at"]


@pytest.mark.asyncio
async def test_store_timeout_is_500_without_details(client, fake_db):
    fake_db.packs.count_documents = AsyncMock(side_effect=StoreTimeoutError("Database operation timed out", "slow"))

    response = await client.get("/api/search", params={"q": "cats"})

    assert response.status_code == 500
    assert response.json() == {"error": "Database operation timed out", "details": None}


@pytest.mark.asyncio
async def test_store_error_details_in_debug(client, fake_db, monkeypatch):
    monkeypatch.setattr(settings, "DEBUG", True)
    fake_db.packs.count_documents = AsyncMock(side_effect=StoreTimeoutError("Database operation timed out", "slow"))

    response = await client.get("/api/search", params={"q": "cats"})

    assert response.json()["details"] == "slow"


@pytest.mark.asyncio
async def test_unexpected_error_is_generic_500(client, fake_db):
    class BrokenSearch:
        async def search(self, *args, **kwargs):
            raise RuntimeError("boom")

    app.dependency_overrides[get_search_service] = lambda: BrokenSearch()

    response = await client.get("/api/search", params={"q": "cats"})

    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error", "details": None}


@pytest.mark.asyncio
async def test_database_unavailable_is_500(client):
    with patch("starter_pack_explorer.routes.dependencies.db_manager") as mock_db:
        mock_db.is_connected = False
        response = await client.get("/api/stats")

    assert response.status_code == 500
    assert response.json()["error"] == "Database unavailable"


@pytest.mark.asyncio
async def test_health(client):
    with patch("starter_pack_explorer.routes.health.db_manager") as mock_db:
        mock_db.health_check = AsyncMock(return_value=True)
        healthy = await client.get("/health")
        mock_db.health_check = AsyncMock(return_value=False)
        unhealthy = await client.get("/health")

    assert healthy.status_code == 200
    assert healthy.json() == {"status": "healthy", "database": True}
    assert unhealthy.status_code == 503
    assert unhealthy.json() == {"status": "unhealthy", "database": False}
