"""
商品编辑器模块
Listing Editor Module

编辑会话与两阶段提交编排
"""

from .factory import open_listing_editor
from .session import ListingEditorSession, flatten_categories
from .submission import SubmissionOrchestrator, UploadProgress

__all__ = [
    "ListingEditorSession",
    "SubmissionOrchestrator",
    "UploadProgress",
    "flatten_categories",
    "open_listing_editor",
]
