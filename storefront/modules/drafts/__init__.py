"""
草稿模块
Drafts Module

进行中商品草稿与图片预览元数据的持久化
"""

from .autosave import DraftAutosaver
from .store import DraftStore, JsonFileBackend, MemoryBackend, create_draft_store

__all__ = ["DraftAutosaver", "DraftStore", "JsonFileBackend", "MemoryBackend", "create_draft_store"]
