"""
草稿自动保存
Draft autosave

在事件循环上对高频草稿写入做防抖，并保证清除操作不会被过期的待写入覆盖
"""

from __future__ import annotations

import asyncio
import copy
from typing import Optional

from storefront.core.error_handler import DraftStoreError
from storefront.core.logger import get_logger
from storefront.modules.interfaces import IDraftStore
from storefront.modules.listing.models import ProductDraft


class DraftAutosaver:
    """
    防抖写入器

    Args:
        store: 草稿存储
        kind: 资源类型
        debounce_seconds: 防抖间隔，0表示立即写入
    """

    def __init__(self, store: IDraftStore, kind: str, debounce_seconds: float = 0.0):
        self.store = store
        self.kind = kind
        self.debounce_seconds = max(0.0, float(debounce_seconds))
        self.logger = get_logger()
        self._handle: Optional[asyncio.TimerHandle] = None
        self._pending: Optional[ProductDraft] = None
        self.writes = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def schedule(self, draft: ProductDraft) -> None:
        """
        安排一次保存（后到者覆盖先到者）

        没有运行中的事件循环或防抖为0时直接写入。
        """
        snapshot = copy.deepcopy(draft)
        if self.debounce_seconds <= 0:
            self._write(snapshot)
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._write(snapshot)
            return

        self._cancel_handle()
        self._pending = snapshot
        self._handle = loop.call_later(self.debounce_seconds, self._fire)

    def flush(self) -> None:
        """立即写入待保存的草稿"""
        if self._pending is None:
            return
        snapshot = self._pending
        self.cancel()
        self._write(snapshot)

    def cancel(self) -> None:
        """丢弃待保存的草稿"""
        self._cancel_handle()
        self._pending = None

    def clear(self) -> None:
        """取消待写入后清除草稿与预览元数据"""
        self.cancel()
        self.store.discard(self.kind)
        self.logger.debug(f"Cleared persisted {self.kind} draft")

    def _fire(self) -> None:
        self._handle = None
        snapshot, self._pending = self._pending, None
        if snapshot is not None:
            self._write(snapshot)

    def _write(self, draft: ProductDraft) -> None:
        try:
            self.store.save(self.kind, draft)
        except DraftStoreError as e:
            self.logger.error(f"Autosave of {self.kind} draft failed: {e.message}")
            return
        self.writes += 1

    def _cancel_handle(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
