"""Tests for the category endpoints."""

import pytest
from httpx import AsyncClient

from app.api.deps import get_category_service
from app.core.mutation_validator import RejectionKind
from app.main import REJECTION_STATUS, app
from app.schemas.category import CategoryNode
from app.services.category_service import CategoryService
from app.services.category_store import InMemoryCategoryStore


class TestCategoryReads:
    """Tests for GET routes."""

    @pytest.mark.asyncio
    async def test_list_categories(self, client: AsyncClient) -> None:
        response = await client.get("/categories")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert [c["id"] for c in body["data"]] == [1, 2, 3, 4, 5, 6]
        assert body["data"][0]["total_product_count"] == 12
        assert body["data"][0]["total_subcategory_count"] == 4

    @pytest.mark.asyncio
    async def test_tree(self, client: AsyncClient) -> None:
        response = await client.get("/categories/tree")

        assert response.status_code == 200
        data = response.json()["data"]
        assert [root["id"] for root in data["categories"]] == [1, 6]
        assert [c["id"] for c in data["categories"][0]["children"]] == [2, 5]
        assert data["auto_expand_ids"] == []
        assert data["warnings"] == []

    @pytest.mark.asyncio
    async def test_tree_search(self, client: AsyncClient) -> None:
        response = await client.get("/categories/tree", params={"q": " Door "})

        data = response.json()["data"]
        assert data["auto_expand_ids"] == [1, 2, 4]
        assert data["query"] == " Door "
        armor = data["categories"][0]["children"][0]
        assert [c["name"] for c in armor["children"]] == ["Door Panels"]

    @pytest.mark.asyncio
    async def test_tree_hides_inactive(self, client: AsyncClient) -> None:
        await client.patch("/categories/1", json={"is_active": False})

        response = await client.get("/categories/tree", params={"include_inactive": "false"})

        assert [root["id"] for root in response.json()["data"]["categories"]] == [6]

    @pytest.mark.asyncio
    async def test_main_categories(self, client: AsyncClient) -> None:
        response = await client.get("/categories/main")

        assert [c["id"] for c in response.json()["data"]] == [1, 6]

    @pytest.mark.asyncio
    async def test_by_parent(self, client: AsyncClient) -> None:
        response = await client.get("/categories/by-parent/1")

        assert response.status_code == 200
        assert [c["id"] for c in response.json()["data"]] == [2, 5]

    @pytest.mark.asyncio
    async def test_by_missing_parent(self, client: AsyncClient) -> None:
        response = await client.get("/categories/by-parent/99")

        assert response.status_code == 404
        assert response.json()["error_type"] == "not_found"

    @pytest.mark.asyncio
    async def test_get_category_with_path(self, client: AsyncClient) -> None:
        response = await client.get("/categories/3")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["category"]["name"] == "Ballistic Glass"
        assert data["category"]["depth"] == 2
        assert data["ancestor_ids"] == [1, 2]
        assert data["path"] == {"main_category_id": 1, "category_id": 2, "subcategory_id": 3}

    @pytest.mark.asyncio
    async def test_list_long_legacy_chain(self, client: AsyncClient) -> None:
        nodes = [
            CategoryNode(id=i, name=f"N{i}", parent_id=i - 1 if i > 1 else None)
            for i in range(1, 1501)
        ]
        service = CategoryService(InMemoryCategoryStore(nodes))
        app.dependency_overrides[get_category_service] = lambda: service

        response = await client.get("/categories")

        assert response.status_code == 200
        data = response.json()["data"]
        assert len(data) == 1500
        assert data[-1]["depth"] == 1499
        assert data[0]["total_subcategory_count"] == 1499

    @pytest.mark.asyncio
    async def test_get_missing_category(self, client: AsyncClient) -> None:
        response = await client.get("/categories/99")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "Category 99 does not exist"
        assert body["detail"] == {"category_id": 99}


class TestRejectionStatus:
    """Tests for the rejection to HTTP status table."""

    def test_every_rejection_kind_is_mapped(self) -> None:
        assert set(REJECTION_STATUS) == set(RejectionKind)

    def test_status_codes(self) -> None:
        assert REJECTION_STATUS[RejectionKind.NOT_FOUND] == 404
        assert REJECTION_STATUS[RejectionKind.PARENT_NOT_FOUND] == 422
        assert REJECTION_STATUS[RejectionKind.INVALID_NAME] == 422
        assert {
            REJECTION_STATUS[kind]
            for kind in (
                RejectionKind.DEPTH_EXCEEDED,
                RejectionKind.CYCLIC_PARENT,
                RejectionKind.HAS_PRODUCTS,
                RejectionKind.HAS_SUBCATEGORIES,
            )
        } == {409}


class TestCategoryWrites:
    """Tests for POST, PUT, PATCH and DELETE routes."""

    @pytest.mark.asyncio
    async def test_create(self, client: AsyncClient) -> None:
        response = await client.post(
            "/categories", json={"name": "  Tint  ", "parentId": 2, "isControlled": True}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Category created successfully"
        assert body["data"]["id"] == 7
        assert body["data"]["name"] == "Tint"
        assert body["data"]["depth"] == 2
        assert body["data"]["is_controlled"] is True

    @pytest.mark.asyncio
    async def test_create_main_category_from_form(self, client: AsyncClient) -> None:
        response = await client.post("/categories", json={"name": "Optics", "parent_id": ""})

        assert response.status_code == 201
        assert response.json()["data"]["parent_id"] is None

    @pytest.mark.asyncio
    async def test_create_too_deep(self, client: AsyncClient) -> None:
        response = await client.post("/categories", json={"name": "Film", "parent_id": 3})

        assert response.status_code == 409
        assert response.json()["error_type"] == "depth_exceeded"

    @pytest.mark.asyncio
    async def test_create_blank_name(self, client: AsyncClient) -> None:
        response = await client.post("/categories", json={"name": "   "})

        assert response.status_code == 422
        assert response.json()["error"] == "Category name is required"

    @pytest.mark.asyncio
    async def test_create_unknown_parent(self, client: AsyncClient) -> None:
        response = await client.post("/categories", json={"name": "X", "parent_id": 42})

        assert response.status_code == 422
        assert response.json()["error_type"] == "parent_not_found"

    @pytest.mark.asyncio
    async def test_update_move(self, client: AsyncClient) -> None:
        response = await client.put("/categories/5", json={"parent_id": 6})

        assert response.status_code == 200
        assert response.json()["data"]["parent_id"] == 6
        assert response.json()["data"]["depth"] == 1

    @pytest.mark.asyncio
    async def test_update_cyclic_move(self, client: AsyncClient) -> None:
        response = await client.put("/categories/1", json={"parent_id": 4})

        assert response.status_code == 409
        assert response.json()["error_type"] == "cyclic_parent"

    @pytest.mark.asyncio
    async def test_update_missing(self, client: AsyncClient) -> None:
        response = await client.put("/categories/99", json={"name": "X"})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_deactivate_returns_advisory(self, client: AsyncClient) -> None:
        response = await client.patch("/categories/2", json={"isActive": False})

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Category deactivated"
        assert body["data"]["category"]["is_active"] is False
        advisory = body["data"]["advisory"]
        assert advisory["hidden_category_ids"] == [2, 3, 4]
        assert advisory["hidden_product_count"] == 11

    @pytest.mark.asyncio
    async def test_activate_has_no_advisory(self, client: AsyncClient) -> None:
        response = await client.patch("/categories/2", json={"is_active": True})

        assert response.status_code == 200
        assert response.json()["data"]["advisory"] is None

    @pytest.mark.asyncio
    async def test_delete_with_products(self, client: AsyncClient) -> None:
        response = await client.delete("/categories/2")

        assert response.status_code == 409
        body = response.json()
        assert body["error_type"] == "has_products"
        assert body["error"].startswith('Cannot delete "Armor". It has 5 products')

    @pytest.mark.asyncio
    async def test_delete_with_subcategories(
        self, client: AsyncClient, category_store: InMemoryCategoryStore
    ) -> None:
        category_store.set_product_counts(2, total=0)

        response = await client.delete("/categories/2")

        assert response.status_code == 409
        assert response.json()["error_type"] == "has_subcategories"

    @pytest.mark.asyncio
    async def test_delete_empty_leaf(self, client: AsyncClient) -> None:
        response = await client.delete("/categories/5")

        assert response.status_code == 200
        assert response.json() == {"success": True, "data": None, "message": "Category deleted"}
        assert (await client.get("/categories/5")).status_code == 404

    @pytest.mark.asyncio
    async def test_invalid_payload(self, client: AsyncClient) -> None:
        response = await client.post("/categories", json={"name": "X", "colour": "red"})

        assert response.status_code == 422
