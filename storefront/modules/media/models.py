"""
媒体数据模型
Media Models

本地待上传图片与预览句柄
"""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from storefront.core.error_handler import MediaError


@dataclass
class LocalImageFile:
    """用户选择的本地图片文件"""
    filename: str
    data: bytes = field(repr=False)
    content_type: Optional[str] = None

    def __post_init__(self):
        if not self.content_type:
            guessed, _ = mimetypes.guess_type(self.filename)
            self.content_type = guessed or "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower().lstrip(".")

    @classmethod
    def from_path(cls, path: str | Path) -> "LocalImageFile":
        """
        读取本地图片文件

        Raises:
            MediaError: 文件无法读取
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise MediaError(f"Cannot read image file {path.name}: {e}", {"path": str(path)})
        return cls(filename=path.name, data=data)


@dataclass
class PreviewHandle:
    """本地预览句柄，持有二进制直到被释放"""
    ref: str
    image_id: str
    filename: str
    content_type: str
    data: bytes = field(repr=False)
