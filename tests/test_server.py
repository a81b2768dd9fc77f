"""End-to-end tests: synchronizer -> HttpRemoteStore -> FastAPI REST store -> JSON file."""

import json

import httpx
import pytest
import pytest_asyncio

from menu_store.exceptions import SyncError
from menu_store.schemas import DishDraft, DishVariant
from menu_store.server import create_app
from menu_store.services.remote import HttpRemoteStore
from menu_store.services.synchronizer import CollectionSynchronizer
from menu_store.storage import JsonDocumentStore


@pytest.fixture
def db_file(tmp_path, seed):
    path = tmp_path / "db.json"
    path.write_text(json.dumps(seed), encoding="utf-8")
    return path


@pytest.fixture
def app(db_file):
    return create_app(db_file)


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as test_client:
        yield test_client


@pytest_asyncio.fixture
async def http_sync(app):
    store = HttpRemoteStore(
        base_url="http://testserver",
        timeout=5.0,
        transport=httpx.ASGITransport(app=app),
    )
    synchronizer = CollectionSynchronizer(store, request_timeout=5.0)
    await synchronizer.initialize()
    yield synchronizer
    await synchronizer.aclose()


# ============== REST surface ==============

@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


@pytest.mark.asyncio
async def test_collection_crud(client):
    response = await client.post("/branches", json={"name": "Sergeli", "address": "", "phone": ""})
    assert response.status_code == 201
    branch_id = response.json()["id"]

    response = await client.put(f"/branches/{branch_id}", json={"name": "Sergeli 2"})
    assert response.json() == {"name": "Sergeli 2", "id": branch_id}

    response = await client.patch("/dishes/d1", json={"sortOrder": 9})
    assert response.json()["sortOrder"] == 9
    assert response.json()["name"] == "Plov"

    response = await client.delete(f"/branches/{branch_id}")
    assert response.status_code == 200
    assert response.json() == {}
    assert [b["id"] for b in (await client.get("/branches")).json()] == ["b1", "b2"]


@pytest.mark.asyncio
async def test_errors_carry_message(client):
    missing = await client.delete("/dishes/ghost")
    unknown = await client.get("/orders")
    not_object = await client.post("/categories", json=[1, 2])

    assert missing.status_code == 404
    assert "ghost" in missing.json()["message"]
    assert unknown.status_code == 404
    assert not_object.status_code == 400
    assert not_object.json()["message"] == "Request body must be a JSON object"


@pytest.mark.asyncio
async def test_branding_singleton(client):
    response = await client.put("/branding", json={"restaurantName": "New name"})

    assert response.status_code == 200
    assert (await client.get("/branding")).json() == {"restaurantName": "New name"}


# ============== Synchronizer over HTTP ==============

@pytest.mark.asyncio
async def test_menu_session_persists_to_file(http_sync, db_file):
    drinks = await http_sync.add_category("Drinks")
    c1, c2, new = http_sync.categories
    await http_sync.reorder_categories([c2, new, c1])

    kompot = await http_sync.add_dish(DishDraft(
        category_id=drinks.id,
        name="Kompot",
        variants=[DishVariant(name="0.5L", price=15000), DishVariant(name="1L", price=25000)],
    ))
    await http_sync.move_dish("d3", "up")
    await http_sync.delete_category("c2")

    document = JsonDocumentStore(path=db_file).list_documents("categories")
    assert {c["id"]: c["sortOrder"] for c in document} == {drinks.id: 1, "c1": 2}

    dishes = {d["id"]: d for d in JsonDocumentStore(path=db_file).list_documents("dishes")}
    assert dishes[kompot.id]["price"] == 15000
    assert dishes[kompot.id]["sortOrder"] == 0
    assert dishes["d3"]["sortOrder"] == 1
    assert dishes["d2"]["sortOrder"] == 2
    assert not any(d["categoryId"] == "c2" for d in dishes.values())


@pytest.mark.asyncio
async def test_server_error_rolls_back(http_sync):
    before = http_sync.dishes

    with pytest.raises(SyncError) as exc_info:
        await http_sync.update_dish("ghost", DishDraft(category_id="c1", name="Ghost"))

    assert http_sync.dishes == before
    assert exc_info.value.cause.status == 404
