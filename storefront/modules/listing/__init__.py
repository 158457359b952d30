"""
商品上架模块
Listing Module

商品草稿模型、步骤向导与提交数据组装
"""

from .models import (
    Actor,
    Category,
    FinalizedImage,
    ImageAngle,
    MinOrderUnit,
    ProductCondition,
    ProductDraft,
    StagedImage,
    SubmissionResult,
    UploadFailure,
    WarrantyType,
)
from .payload import PayloadBuilder
from .wizard import STEP_ORDER, ListingStep, StepWizard

__all__ = [
    "Actor",
    "Category",
    "FinalizedImage",
    "ImageAngle",
    "ListingStep",
    "MinOrderUnit",
    "PayloadBuilder",
    "ProductCondition",
    "ProductDraft",
    "STEP_ORDER",
    "StagedImage",
    "StepWizard",
    "SubmissionResult",
    "UploadFailure",
    "WarrantyType",
]
