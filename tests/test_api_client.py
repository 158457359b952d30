"""
远程接口适配器测试
API Adapter Tests
"""

import json

import httpx
import pytest

from storefront.core.error_handler import ResourceValidationError, TransportError
from storefront.modules.api.auth import StoredSessionAccessor, normalize_roles
from storefront.modules.api.client import (
    HttpAssetUploader,
    HttpCategoryLookup,
    HttpProductResource,
    StorefrontApiClient,
)
from storefront.modules.drafts.store import DraftStore, MemoryBackend
from storefront.modules.editor.factory import open_listing_editor


API_CONFIG = {
    "base_url": "https://shop.test/api/v1",
    "timeout": 5,
    "token": "secret-token",
    "upload_path": "products/upload-image",
    "products_path": "products",
    "categories_path": "categories",
}


def make_client(handler, **overrides):
    return StorefrontApiClient({**API_CONFIG, **overrides}, transport=httpx.MockTransport(handler))


class TestStorefrontApiClient:
    """API客户端测试"""

    @pytest.mark.asyncio
    async def test_sends_bearer_token(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"success": True, "data": []})

        async with make_client(handler) as client:
            await client.request("GET", "categories")

        assert seen["auth"] == "Bearer secret-token"
        assert seen["url"] == "https://shop.test/api/v1/categories"

    @pytest.mark.asyncio
    async def test_unresolved_token_placeholder_not_sent(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json={"data": []})

        async with make_client(handler, token="${STOREFRONT_API_TOKEN}") as client:
            await client.request("GET", "categories")

        assert seen["auth"] is None

    @pytest.mark.asyncio
    async def test_validation_errors_mapped(self):
        def handler(request):
            return httpx.Response(422, json={
                "message": "The given data was invalid.",
                "errors": {"name": ["The name field is required."], "price": "The price must be a number."},
            })

        async with make_client(handler) as client:
            with pytest.raises(ResourceValidationError) as exc_info:
                await client.request("POST", "products", json={})

        assert exc_info.value.field_errors == {
            "name": ["The name field is required."],
            "price": ["The price must be a number."],
        }

    @pytest.mark.asyncio
    async def test_server_error_uses_message(self):
        def handler(request):
            return httpx.Response(500, json={"message": "Database unavailable"})

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.request("GET", "categories")

        assert exc_info.value.message == "Database unavailable"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(502, text="<html>Bad gateway</html>")

        async with make_client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.request("GET", "categories")

        assert exc_info.value.message == "Request failed with status 502"

    @pytest.mark.asyncio
    async def test_network_error_mapped(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(TransportError):
                await client.request("GET", "categories")

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope_raises(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "message": "Seller account suspended"})

        async with make_client(handler) as client:
            with pytest.raises(TransportError, match="Seller account suspended"):
                await client.request("GET", "categories")


class TestHttpAdapters:
    """资源适配器测试"""

    @pytest.mark.asyncio
    async def test_category_lookup(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": [
                {"id": 1, "name": "Building", "children": [{"id": 2, "name": "Cement"}]},
                {"name": "missing id"},
            ]})

        async with make_client(handler) as client:
            categories = await HttpCategoryLookup(client).list_categories()

        assert len(categories) == 1
        assert categories[0].children[0].name == "Cement"

    @pytest.mark.asyncio
    async def test_category_lookup_skips_malformed_children(self, editor_config):
        def handler(request):
            return httpx.Response(200, json={"data": [
                {"id": 1, "name": "Building", "children": [
                    {"name": "orphan"},
                    {"id": "abc", "name": "bad id"},
                    {"id": None, "name": "null id"},
                    {"id": 2, "name": "Cement"},
                ]},
                {"id": "x", "name": "bad parent"},
            ]})

        async with make_client(handler) as client:
            categories = await HttpCategoryLookup(client).list_categories()
            session = open_listing_editor(client, store=DraftStore(MemoryBackend()), config=editor_config)
            choices = await session.category_choices()
            session.close()

        assert [c.id for c in categories] == [1]
        assert [c.id for c in categories[0].children] == [2]
        assert choices == [(2, "Building / Cement")]

    @pytest.mark.asyncio
    async def test_upload_posts_multipart(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            seen["content_type"] = request.headers["Content-Type"]
            seen["body"] = request.content
            return httpx.Response(200, json={"success": True, "data": {"url": "https://cdn.test/p/1.png"}})

        async with make_client(handler) as client:
            url = await HttpAssetUploader(client).upload(b"PNGDATA", "a.png", "image/png", "back")

        assert url == "https://cdn.test/p/1.png"
        assert seen["path"] == "/api/v1/products/upload-image"
        assert seen["content_type"].startswith("multipart/form-data")
        assert b'name="image"; filename="a.png"' in seen["body"]
        assert b'name="angle"' in seen["body"]

    @pytest.mark.asyncio
    async def test_upload_without_url_fails(self):
        def handler(request):
            return httpx.Response(200, json={"success": True, "data": {}})

        async with make_client(handler) as client:
            with pytest.raises(TransportError):
                await HttpAssetUploader(client).upload(b"x", "a.png", "image/png", "front")

    @pytest.mark.asyncio
    async def test_product_create_and_update(self):
        calls = []

        def handler(request):
            calls.append((request.method, request.url.path, json.loads(request.content)))
            if request.method == "POST":
                return httpx.Response(201, json={"success": True, "data": {"product": {"id": 11, "name": "Cement"}}})
            return httpx.Response(200, json={"success": True, "data": {"id": 11, "name": "Cement v2"}})

        async with make_client(handler) as client:
            resource = HttpProductResource(client)
            created = await resource.create({"name": "Cement"})
            updated = await resource.update(11, {"name": "Cement v2"})

        assert created == {"id": 11, "name": "Cement"}
        assert updated["name"] == "Cement v2"
        assert calls[0][:2] == ("POST", "/api/v1/products")
        assert calls[1][:2] == ("PUT", "/api/v1/products/11")


class TestSessionAccessors:
    """会话用户访问测试"""

    def test_normalize_roles(self):
        assert normalize_roles({"roles": [{"name": "seller"}, "admin"]}) == ["seller", "admin"]
        assert normalize_roles({"roles": {"name": "buyer"}}) == ["buyer"]
        assert normalize_roles({"roles": "seller"}) == ["seller"]
        assert normalize_roles({"type": "seller"}) == ["seller"]
        assert normalize_roles({"role": "admin"}) == ["admin"]
        assert normalize_roles({}) == []

    def test_stored_accessor(self):
        backend = MemoryBackend()
        accessor = StoredSessionAccessor(backend)
        assert accessor.current_actor() is None

        backend.set("user", json.dumps({"id": 9, "type": "seller"}))
        actor = accessor.current_actor()
        assert actor.id == 9
        assert actor.has_role("seller")

        backend.set("user", "{broken")
        assert accessor.current_actor() is None


@pytest.mark.asyncio
async def test_open_listing_editor_wires_http_collaborators(editor_config):
    requests = []
    payloads = []

    def handler(request):
        requests.append((request.method, request.url.path))
        if request.method == "POST" and request.url.path.endswith("/products"):
            payloads.append(json.loads(request.content))
        if request.url.path.endswith("/categories"):
            return httpx.Response(200, json={"data": [{"id": 3, "name": "Tools"}]})
        if request.url.path.endswith("/upload-image"):
            return httpx.Response(200, json={"data": {"url": "https://cdn.test/p/a.png"}})
        return httpx.Response(201, json={"data": {"id": 77}})

    backend = MemoryBackend()
    backend.set("user", json.dumps({"id": 5, "roles": [{"name": "seller"}]}))

    async with make_client(handler) as client:
        session = open_listing_editor(client, store=DraftStore(backend), config=editor_config)
        assert await session.category_choices() == [(3, "Tools")]

        session.update_fields(name="Hammer", description="Steel claw hammer", category_id=3,
                              price="9.99", quantity=20, moq=1)
        session.stager.add_from_url("https://cdn.test/hammer.jpg")
        assert session.next() and session.next() and session.next()

        result = await session.submit()

    assert result.success
    assert result.product == {"id": 77}
    assert ("POST", "/api/v1/products") in requests
    assert payloads[0]["seller_id"] == 5
    assert payloads[0]["images"][0]["url"] == "https://cdn.test/hammer.jpg"
