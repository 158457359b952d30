"""
草稿持久化
Draft persistence store

按资源类型保存进行中的表单草稿与图片预览元数据
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Any, Iterable, Optional

from storefront.core.config import get_config
from storefront.core.error_handler import DraftStoreError
from storefront.core.logger import get_logger
from storefront.modules.interfaces import IDraftStore, IStorageBackend
from storefront.modules.listing.models import ImageAngle, ProductDraft


class MemoryBackend(IStorageBackend):
    """进程内键值存储，用于测试和临时会话。"""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._data)


class JsonFileBackend(IStorageBackend):
    """基于 JSON 文件的轻量键值存储。"""

    def __init__(self, path: str = "data/drafts.json"):
        self.path = Path(path)
        self._lock = Lock()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            value = self._load_all().get(key)
            return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            data = self._load_all()
            data[key] = value
            self._save_all(data)

    def delete(self, key: str) -> None:
        with self._lock:
            data = self._load_all()
            if key in data:
                del data[key]
                self._save_all(data)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._load_all())

    def _load_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8").strip()
            if not raw:
                return {}
            data = json.loads(raw)
            return data if isinstance(data, dict) else {}
        except (OSError, ValueError):
            return {}

    def _save_all(self, data: dict[str, Any]) -> None:
        temp_path = self.path.with_suffix(f"{self.path.suffix}.tmp")
        try:
            temp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            raise DraftStoreError(f"Failed to write draft file: {e}", {"path": str(self.path)})


class DraftStore(IDraftStore):
    """
    草稿存储

    每种资源类型对应两个独立条目：字段草稿与图片预览元数据。
    存储本身不修改数据，只负责序列化读写；解析失败一律视为不存在。
    """

    def __init__(self, backend: Optional[IStorageBackend] = None):
        self.backend = backend or MemoryBackend()
        self.logger = get_logger()

    @staticmethod
    def draft_key(kind: str) -> str:
        return f"{kind}_draft"

    @staticmethod
    def previews_key(kind: str) -> str:
        return f"{kind}_image_previews"

    def load(self, kind: str) -> Optional[ProductDraft]:
        raw = self.backend.get(self.draft_key(kind))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError(f"expected object, got {type(data).__name__}")
            return ProductDraft.from_dict(data)
        except (TypeError, ValueError) as e:
            self.logger.warning(f"Ignoring unreadable {kind} draft: {e}")
            return None

    def save(self, kind: str, draft: ProductDraft) -> None:
        """Decimal等非JSON标量按文本保存，与用户输入的字段值一致"""
        try:
            raw = json.dumps(draft.to_dict(), ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            raise DraftStoreError(f"Cannot serialize {kind} draft: {e}") from e
        self.backend.set(self.draft_key(kind), raw)

    def clear(self, kind: str) -> None:
        self.backend.delete(self.draft_key(kind))

    def load_previews(self, kind: str) -> Optional[list[dict[str, Any]]]:
        """
        读取图片预览元数据

        Returns:
            条目列表（url/angle/is_primary/is_existing），顶层格式错误时返回None，
            单个无效条目会被跳过
        """
        raw = self.backend.get(self.previews_key(kind))
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except ValueError as e:
            self.logger.warning(f"Ignoring unreadable {kind} image previews: {e}")
            return None
        if not isinstance(data, list):
            self.logger.warning(f"Ignoring {kind} image previews: expected a list")
            return None

        entries = []
        for item in data:
            if not isinstance(item, dict) or not isinstance(item.get("url"), str) or not item["url"]:
                continue
            entries.append({
                "url": item["url"],
                "angle": ImageAngle.parse(item.get("angle")).value,
                "is_primary": bool(item.get("is_primary", item.get("isPrimary", False))),
                "is_existing": bool(item.get("is_existing", item.get("isExisting", False))),
            })
        return entries

    def save_previews(self, kind: str, images: Iterable[Any]) -> None:
        """只保存远程URL条目，本地二进制预览无法跨重载恢复"""
        entries = [image.to_preview_metadata() for image in images if not image.is_local]
        self.backend.set(self.previews_key(kind), json.dumps(entries, ensure_ascii=False))

    def clear_previews(self, kind: str) -> None:
        self.backend.delete(self.previews_key(kind))

    def discard(self, kind: str) -> None:
        """同时清除字段草稿与预览元数据"""
        self.clear(kind)
        self.clear_previews(kind)


def create_draft_store(config: Optional[dict] = None) -> DraftStore:
    """
    按配置创建草稿存储

    Args:
        config: drafts 配置段，不指定则读取全局配置
    """
    if config is None:
        config = get_config().drafts
    if str(config.get("backend", "json")) == "memory":
        return DraftStore(MemoryBackend())
    return DraftStore(JsonFileBackend(config.get("path", "data/drafts.json")))
