"""
本地预览注册表
Local preview registry

暂存图片标识到本地预览句柄的映射，每个句柄只能释放一次
"""

from __future__ import annotations

import uuid
from typing import Optional

from storefront.core.logger import get_logger
from storefront.modules.media.models import LocalImageFile, PreviewHandle


class PreviewRegistry:
    """
    预览句柄注册表

    所有本地预览的分配与释放都经过这里，teardown 时统一遍历释放。
    """

    REF_PREFIX = "blob:preview/"

    def __init__(self):
        self._handles: dict[str, PreviewHandle] = {}
        self.logger = get_logger()
        self.allocated = 0
        self.released = 0

    def allocate(self, image_id: str, file: LocalImageFile) -> PreviewHandle:
        if image_id in self._handles:
            raise ValueError(f"Preview already allocated for image {image_id}")
        handle = PreviewHandle(
            ref=f"{self.REF_PREFIX}{uuid.uuid4().hex}",
            image_id=image_id,
            filename=file.filename,
            content_type=file.content_type or "application/octet-stream",
            data=file.data,
        )
        self._handles[image_id] = handle
        self.allocated += 1
        return handle

    def get(self, image_id: str) -> Optional[PreviewHandle]:
        return self._handles.get(image_id)

    def release(self, image_id: str) -> bool:
        """
        释放预览句柄

        Returns:
            是否确实释放；重复释放返回False
        """
        handle = self._handles.pop(image_id, None)
        if handle is None:
            self.logger.warning(f"Preview for image {image_id} already released")
            return False
        handle.data = b""
        self.released += 1
        return True

    def release_all(self) -> int:
        count = 0
        for image_id in list(self._handles):
            if self.release(image_id):
                count += 1
        return count

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    @classmethod
    def is_preview_ref(cls, url: str) -> bool:
        return url.startswith("blob:")
