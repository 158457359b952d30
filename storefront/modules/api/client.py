"""
商城远程API客户端
Storefront API client

基于 httpx 的分类查询、图片上传、商品资源接口实现
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from storefront.core.config import get_config
from storefront.core.error_handler import ResourceValidationError, TransportError
from storefront.core.logger import get_logger
from storefront.modules.interfaces import IAssetUploader, ICategoryLookup, IProductResource
from storefront.modules.listing.models import Category, parse_categories


class StorefrontApiClient:
    """
    商城API客户端

    统一处理鉴权头、超时与错误映射：
    422 + errors -> ResourceValidationError，其余HTTP/网络错误 -> TransportError

    Args:
        config: api 配置段，不指定则读取全局配置
        transport: 自定义 httpx 传输层（测试用）
    """

    def __init__(self, config: dict[str, Any] | None = None, transport: httpx.AsyncBaseTransport | None = None):
        self.config = config if config is not None else get_config().api
        self.base_url = str(self.config.get("base_url", "http://localhost:8000/api/v1/"))
        if not self.base_url.endswith("/"):
            self.base_url += "/"
        self.timeout = float(self.config.get("timeout", 30))
        self.token: Optional[str] = self.config.get("token") or None
        self.transport = transport
        self.logger = get_logger()
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        h = {"Accept": "application/json"}
        if self.token and not self.token.startswith("${"):
            h["Authorization"] = f"Bearer {self.token}"
        return h

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self.transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "StorefrontApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """
        发送请求并返回JSON对象

        Raises:
            ResourceValidationError: 422 且带字段错误
            TransportError: 其他失败
        """
        client = await self._get_client()
        try:
            resp = await client.request(method, path.lstrip("/"), **kwargs)
        except httpx.TimeoutException as e:
            self.logger.warning(f"Timeout calling {method} {path}: {e}")
            raise TransportError("The request timed out. Please try again.")
        except httpx.HTTPError as e:
            self.logger.warning(f"Network error calling {method} {path}: {e}")
            raise TransportError(f"Network error: {e}")

        body = self._json(resp)
        if resp.status_code >= 400:
            message = body.get("message") if isinstance(body.get("message"), str) else None
            errors = body.get("errors")
            if resp.status_code == 422 and isinstance(errors, dict):
                raise ResourceValidationError(self._normalize_errors(errors), message or "The given data was invalid.")
            self.logger.error(f"{method} {path} failed with status {resp.status_code}")
            raise TransportError(message or f"Request failed with status {resp.status_code}", resp.status_code)

        if body.get("success") is False:
            raise TransportError(str(body.get("message") or "Request was not successful"), resp.status_code)
        return body

    @staticmethod
    def _json(resp: httpx.Response) -> dict[str, Any]:
        try:
            data = resp.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {"data": data}

    @staticmethod
    def _normalize_errors(errors: dict[str, Any]) -> dict[str, list[str]]:
        normalized = {}
        for field_name, messages in errors.items():
            if isinstance(messages, (list, tuple)):
                normalized[str(field_name)] = [str(m) for m in messages]
            else:
                normalized[str(field_name)] = [str(messages)]
        return normalized


class HttpCategoryLookup(ICategoryLookup):
    """GET categories"""

    def __init__(self, client: StorefrontApiClient):
        self.client = client
        self.path = client.config.get("categories_path", "categories")

    async def list_categories(self) -> list[Category]:
        body = await self.client.request("GET", self.path)
        return parse_categories(body.get("data"))


class HttpAssetUploader(IAssetUploader):
    """POST multipart 图片上传，返回 data.url"""

    def __init__(self, client: StorefrontApiClient):
        self.client = client
        self.path = client.config.get("upload_path", "products/upload-image")

    async def upload(self, data: bytes, filename: str, content_type: str, angle: str) -> str:
        body = await self.client.request(
            "POST",
            self.path,
            files={"image": (filename, data, content_type)},
            data={"angle": angle},
        )
        url = (body.get("data") or {}).get("url") if isinstance(body.get("data"), dict) else None
        if not url:
            raise TransportError("Upload response did not include an image URL")
        return str(url)


class HttpProductResource(IProductResource):
    """POST products / PUT products/{id}"""

    def __init__(self, client: StorefrontApiClient):
        self.client = client
        self.path = client.config.get("products_path", "products").rstrip("/")

    async def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self.client.request("POST", self.path, json=payload)
        return self._entity(body)

    async def update(self, product_id: Any, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self.client.request("PUT", f"{self.path}/{product_id}", json=payload)
        return self._entity(body)

    @staticmethod
    def _entity(body: dict[str, Any]) -> dict[str, Any]:
        data = body.get("data")
        if isinstance(data, dict):
            product = data.get("product")
            return product if isinstance(product, dict) else data
        return body
