"""
媒体模块
Media Module

本地图片校验、预览句柄管理与图片暂存
"""

from .models import LocalImageFile, PreviewHandle
from .previews import PreviewRegistry
from .stager import AssetStager, FileRejection, StagingReport
from .validation import ImageValidator

__all__ = [
    "AssetStager",
    "FileRejection",
    "ImageValidator",
    "LocalImageFile",
    "PreviewHandle",
    "PreviewRegistry",
    "StagingReport",
]
