"""
功能模块
Modules

商品编辑器各组成部分：草稿持久化、图片暂存、步骤向导、提交编排与远程接口
"""

from .drafts import DraftAutosaver, DraftStore
from .editor import ListingEditorSession, SubmissionOrchestrator
from .listing import ProductDraft, StepWizard, SubmissionResult
from .media import AssetStager, LocalImageFile, PreviewRegistry

__all__ = [
    "AssetStager",
    "DraftAutosaver",
    "DraftStore",
    "ListingEditorSession",
    "LocalImageFile",
    "PreviewRegistry",
    "ProductDraft",
    "StepWizard",
    "SubmissionOrchestrator",
    "SubmissionResult",
]
