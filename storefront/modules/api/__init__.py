"""
远程接口模块
API Module

商城REST接口适配器与会话用户访问
"""

from .auth import StaticSessionAccessor, StoredSessionAccessor, normalize_roles
from .client import HttpAssetUploader, HttpCategoryLookup, HttpProductResource, StorefrontApiClient

__all__ = [
    "HttpAssetUploader",
    "HttpCategoryLookup",
    "HttpProductResource",
    "StaticSessionAccessor",
    "StorefrontApiClient",
    "StoredSessionAccessor",
    "normalize_roles",
]
