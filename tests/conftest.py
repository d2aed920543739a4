"""Shared fixtures."""

import os

os.environ.setdefault("CATEGORY_STORE", "memory")
os.environ.setdefault("ENVIRONMENT", "dev")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_category_service
from app.main import app
from app.schemas.category import CategoryNode
from app.services.category_service import CategoryService
from app.services.category_store import InMemoryCategoryStore


@pytest.fixture
def scenario_a_nodes() -> list[CategoryNode]:
    """Vehicles > Armor > Glass."""
    return [
        CategoryNode(id=1, name="Vehicles", parent_id=None),
        CategoryNode(id=2, name="Armor", parent_id=1),
        CategoryNode(id=3, name="Glass", parent_id=2),
    ]


@pytest.fixture
def catalog_nodes() -> list[CategoryNode]:
    """Two main categories with products spread over three levels."""
    return [
        CategoryNode(id=1, name="Vehicles", direct_product_count=1, direct_published_product_count=1),
        CategoryNode(id=2, name="Armor", parent_id=1, direct_product_count=5, direct_published_product_count=3),
        CategoryNode(id=3, name="Ballistic Glass", parent_id=2, direct_product_count=4, direct_published_product_count=2),
        CategoryNode(id=4, name="Door Panels", parent_id=2, direct_product_count=2, direct_published_product_count=2),
        CategoryNode(id=5, name="Tires", parent_id=1, direct_product_count=0),
        CategoryNode(id=6, name="Accessories", direct_product_count=7, direct_published_product_count=7),
    ]


@pytest.fixture
def category_store(catalog_nodes: list[CategoryNode]) -> InMemoryCategoryStore:
    """In-memory store seeded with the catalog nodes."""
    return InMemoryCategoryStore(catalog_nodes)


@pytest.fixture
def category_service(category_store: InMemoryCategoryStore) -> CategoryService:
    """Service over the in-memory store."""
    return CategoryService(store=category_store, max_depth=2)


@pytest_asyncio.fixture
async def client(category_service: CategoryService) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the app with the in-memory service."""
    app.dependency_overrides[get_category_service] = lambda: category_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
