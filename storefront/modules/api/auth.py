"""
会话用户访问
Session accessors

从客户端存储的用户记录中解析当前用户与角色
"""

from __future__ import annotations

import json
from typing import Any, Optional

from storefront.core.logger import get_logger
from storefront.modules.interfaces import ISessionAccessor, IStorageBackend
from storefront.modules.listing.models import Actor


def normalize_roles(user: dict[str, Any]) -> list[str]:
    """
    兼容多种角色格式：对象列表、单个对象、字符串，退化为 type / role 字段
    """
    raw = user.get("roles")
    roles: list[Any]
    if isinstance(raw, list):
        roles = [
            (item.get("name") or item.get("role") or item.get("title")) if isinstance(item, dict) else item
            for item in raw
        ]
    elif isinstance(raw, dict):
        roles = [raw.get("name") or raw.get("role")]
    elif isinstance(raw, str):
        roles = [raw]
    elif user.get("type"):
        roles = [user["type"]]
    elif user.get("role"):
        roles = [user["role"]]
    else:
        roles = []
    return [str(role) for role in roles if role]


class StaticSessionAccessor(ISessionAccessor):
    """固定用户（测试或服务端代理场景）"""

    def __init__(self, actor: Optional[Actor] = None):
        self.actor = actor

    def current_actor(self) -> Optional[Actor]:
        return self.actor


class StoredSessionAccessor(ISessionAccessor):
    """
    从键值存储的 "user" 记录读取当前用户

    Args:
        backend: 客户端存储
        key: 用户记录键
    """

    def __init__(self, backend: IStorageBackend, key: str = "user"):
        self.backend = backend
        self.key = key
        self.logger = get_logger()

    def current_actor(self) -> Optional[Actor]:
        raw = self.backend.get(self.key)
        if not raw:
            return None
        try:
            user = json.loads(raw)
        except ValueError:
            self.logger.warning("Ignoring unreadable stored user record")
            return None
        if not isinstance(user, dict) or user.get("id") is None:
            return None
        return Actor(id=user["id"], roles=normalize_roles(user))
