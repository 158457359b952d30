"""
编辑会话装配
Editor session wiring

用远程API适配器、配置化草稿存储和存储中的登录用户组装编辑会话
"""

from __future__ import annotations

from typing import Any, Optional

from storefront.core.config import get_config
from storefront.modules.api.auth import StoredSessionAccessor
from storefront.modules.api.client import (
    HttpAssetUploader,
    HttpCategoryLookup,
    HttpProductResource,
    StorefrontApiClient,
)
from storefront.modules.drafts.store import DraftStore, create_draft_store
from storefront.modules.editor.session import ListingEditorSession


def open_listing_editor(
    client: Optional[StorefrontApiClient] = None,
    product: Optional[dict[str, Any]] = None,
    store: Optional[DraftStore] = None,
    kind: str = "product",
    config: Optional[dict[str, Any]] = None,
) -> ListingEditorSession:
    """
    创建连接远程API的编辑会话

    Args:
        client: API客户端，不指定则按 api 配置创建
        product: 已有商品实体（编辑模式）
        store: 草稿存储，不指定则按 drafts 配置创建
        kind: 资源类型
        config: 含 api/media/drafts/submission 段的配置字典，缺失段读取全局配置

    Returns:
        ListingEditorSession
    """
    config = config or {}
    client = client or StorefrontApiClient(config.get("api") or get_config().api)
    store = store or create_draft_store(config.get("drafts") or get_config().drafts)

    return ListingEditorSession(
        HttpAssetUploader(client),
        HttpProductResource(client),
        store=store,
        session_accessor=StoredSessionAccessor(store.backend),
        category_lookup=HttpCategoryLookup(client),
        product=product,
        kind=kind,
        config=config,
    )
