"""
图片暂存器
Asset stager

管理商品候选图片：本地文件/远程URL的加入、主图与角度、排序与移除，
与上传状态无关。本地预览句柄全部经由 PreviewRegistry 分配和释放。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Iterator, Optional
from urllib.parse import urlparse

from storefront.core.error_handler import safe_execute
from storefront.core.logger import get_logger
from storefront.modules.listing.models import ImageAngle, StagedImage
from storefront.modules.media.models import LocalImageFile, PreviewHandle
from storefront.modules.media.previews import PreviewRegistry
from storefront.modules.media.validation import ImageValidator


@dataclass
class FileRejection:
    """被拒绝的文件及原因"""
    filename: str
    reason: str

    def __str__(self) -> str:
        return f"{self.filename}: {self.reason}"


@dataclass
class StagingReport:
    """一次加入操作的结果"""
    added: list[StagedImage] = field(default_factory=list)
    rejected: list[FileRejection] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.rejected

    @property
    def errors(self) -> list[str]:
        return [str(rejection) for rejection in self.rejected]


class AssetStager:
    """
    图片暂存器

    不变量：集合非空时恰好一张主图。

    Args:
        registry: 预览注册表
        validator: 图片校验器
        default_angle: 新图片默认角度
    """

    def __init__(
        self,
        registry: Optional[PreviewRegistry] = None,
        validator: Optional[ImageValidator] = None,
        default_angle: ImageAngle | str = ImageAngle.FRONT,
    ):
        self.registry = registry or PreviewRegistry()
        self.validator = validator or ImageValidator()
        self.default_angle = ImageAngle.parse(default_angle)
        self.logger = get_logger()
        self._images: list[StagedImage] = []
        self._listeners: list[Callable[["AssetStager"], Any]] = []

    def __len__(self) -> int:
        return len(self._images)

    def __iter__(self) -> Iterator[StagedImage]:
        return iter(list(self._images))

    def __getitem__(self, index: int) -> StagedImage:
        return self._images[index]

    @property
    def images(self) -> list[StagedImage]:
        return list(self._images)

    @property
    def primary(self) -> Optional[StagedImage]:
        return next((image for image in self._images if image.is_primary), None)

    @property
    def usable_count(self) -> int:
        return sum(1 for image in self._images if image.usable)

    def add_listener(self, listener: Callable[["AssetStager"], Any]) -> None:
        """注册变更回调，每次修改后调用"""
        self._listeners.append(listener)

    def add_files(self, files: Iterable[LocalImageFile], angle: ImageAngle | str | None = None) -> StagingReport:
        """
        加入本地图片

        无效文件逐个记录原因，不影响其余有效文件。

        Args:
            files: 本地图片列表
            angle: 拍摄角度，不指定则使用默认角度

        Returns:
            StagingReport
        """
        report = StagingReport()
        tag = ImageAngle.parse(angle, self.default_angle)

        for file in files:
            valid, reason = self.validator.validate(file)
            if not valid:
                self.logger.warning(f"Rejected image {file.filename}: {reason}")
                report.rejected.append(FileRejection(file.filename, reason))
                continue

            image = StagedImage(url="", angle=tag, is_local=True, filename=file.filename)
            handle = self.registry.allocate(image.image_id, file)
            image.url = handle.ref
            image.is_primary = not self._images
            self._images.append(image)
            report.added.append(image)

        if report.added:
            self.logger.debug(f"Staged {len(report.added)} local images ({len(self._images)} total)")
            self._notify()
        return report

    def add_from_url(self, url: str, angle: ImageAngle | str | None = None) -> StagingReport:
        """
        加入远程URL图片

        Args:
            url: http/https 图片地址
            angle: 拍摄角度

        Returns:
            StagingReport
        """
        report = StagingReport()
        url = (url or "").strip()
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            report.rejected.append(FileRejection(url or "<empty>", "not a valid http(s) URL"))
            return report

        image = StagedImage(
            url=url,
            angle=ImageAngle.parse(angle, self.default_angle),
            is_primary=not self._images,
        )
        self._images.append(image)
        report.added.append(image)
        self._notify()
        return report

    def remove(self, index: int) -> StagedImage:
        """
        移除图片并释放预览；若移除的是主图则由剩余第一张接任
        """
        self._check_index(index)
        image = self._images.pop(index)
        self._release(image)
        if image.is_primary and self._images:
            self._images[0].is_primary = True
        self._notify()
        return image

    def set_primary(self, index: int) -> None:
        self._check_index(index)
        for i, image in enumerate(self._images):
            image.is_primary = i == index
        self._notify()

    def reorder(self, from_index: int, to_index: int) -> None:
        """移动图片位置，不改变主图与角度"""
        self._check_index(from_index)
        self._check_index(to_index)
        if from_index == to_index:
            return
        image = self._images.pop(from_index)
        self._images.insert(to_index, image)
        self._notify()

    def set_angle(self, index: int, angle: ImageAngle | str) -> None:
        self._check_index(index)
        self._images[index].angle = ImageAngle.parse(angle)
        self._notify()

    def clear_all(self) -> None:
        """释放全部预览并清空（确认由调用方负责）"""
        for image in self._images:
            self._release(image)
        self._images = []
        self._notify()

    def restore(self, entries: Iterable[dict[str, Any]], existing: bool = False) -> None:
        """
        从持久化的预览元数据或已有商品图片重建集合

        本地预览引用在重载后失去二进制，标记为 stale，不会被提交。

        Args:
            entries: 元数据列表（url/angle/is_primary/is_existing）
            existing: 是否来自已有商品（全部视为已持久化）
        """
        for image in self._images:
            self._release(image)

        restored = []
        for entry in entries:
            url = str(entry.get("url") or "").strip()
            if not url:
                continue
            is_existing = existing or bool(entry.get("is_existing", False))
            local = not is_existing and PreviewRegistry.is_preview_ref(url)
            restored.append(StagedImage(
                url=url,
                angle=ImageAngle.parse(entry.get("angle")),
                is_primary=bool(entry.get("is_primary", False)),
                is_local=local,
                is_existing=is_existing,
                stale=local,
            ))

        self._images = restored
        self._normalize_primary()
        stale = sum(1 for image in restored if image.stale)
        if stale:
            self.logger.warning(f"Restored {stale} local previews whose file is no longer available")

    def handle_for(self, image: StagedImage) -> Optional[PreviewHandle]:
        return self.registry.get(image.image_id)

    def pending_uploads(self) -> list[StagedImage]:
        """尚未上传的本地图片（含失效的）"""
        return [image for image in self._images if image.pending_upload]

    def mark_uploaded(self, image_id: str, url: str) -> StagedImage:
        """
        将已上传成功的本地图片替换为持久化URL并释放其预览

        Args:
            image_id: 暂存图片标识
            url: 上传接口返回的URL
        """
        image = next((img for img in self._images if img.image_id == image_id), None)
        if image is None:
            raise KeyError(image_id)
        self._release(image)
        image.url = url
        image.is_local = False
        image.is_existing = True
        image.stale = False
        self._notify()
        return image

    def preview_metadata(self) -> list[dict[str, Any]]:
        return [image.to_preview_metadata() for image in self._images if not image.is_local]

    def teardown(self) -> int:
        """
        会话结束：释放仍持有的全部预览

        不触发变更回调，已持久化的预览元数据保持不变。

        Returns:
            释放的句柄数量
        """
        released = 0
        for image in self._images:
            if self._release(image):
                released += 1
        self._images = []
        if released:
            self.logger.debug(f"Released {released} local previews on teardown")
        return released

    def _release(self, image: StagedImage) -> bool:
        if image.image_id in self.registry:
            return self.registry.release(image.image_id)
        return False

    def _normalize_primary(self) -> None:
        seen = False
        for image in self._images:
            if image.is_primary and not seen:
                seen = True
            else:
                image.is_primary = False
        if self._images and not seen:
            self._images[0].is_primary = True

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._images):
            raise IndexError(f"image index {index} out of range (0..{len(self._images) - 1})")

    def _notify(self) -> None:
        for listener in list(self._listeners):
            self._call_listener(listener)

    @safe_execute()
    def _call_listener(self, listener: Callable[["AssetStager"], Any]) -> None:
        listener(self)
