"""
商品提交编排
Submission orchestrator

两阶段提交：先上传本地暂存图片，再调用商品资源接口创建或更新。
单张图片上传失败不影响其他图片；所有失败都以 SubmissionResult 返回。
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

from storefront.core.config import get_config
from storefront.core.error_handler import (
    PayloadError,
    ResourceValidationError,
    StorefrontError,
    log_execution_time,
    safe_execute,
)
from storefront.core.logger import get_logger
from storefront.modules.drafts.autosave import DraftAutosaver
from storefront.modules.interfaces import IAssetUploader, IProductResource, ISessionAccessor
from storefront.modules.listing.models import (
    FinalizedImage,
    ProductDraft,
    StagedImage,
    SubmissionResult,
    UploadFailure,
)
from storefront.modules.listing.payload import PayloadBuilder
from storefront.modules.media.stager import AssetStager


GENERAL_ERROR = "Something went wrong. Please try again."
UPLOAD_ERROR = "Failed to upload images"
BUSY_ERROR = "A submission is already in progress"

ProgressListener = Callable[[int, int, int], Any]


class UploadProgress:
    """
    上传进度

    百分比 = 成功上传数 / 待上传总数，只增不减。
    没有待上传图片时上传阶段保持0%，阶段结束时直接报告100%。
    """

    def __init__(self):
        self.total = 0
        self.completed = 0
        self.percent = 0
        self.history: list[int] = []
        self._listeners: list[ProgressListener] = []

    def add_listener(self, listener: ProgressListener) -> None:
        """回调参数: (percent, completed, total)"""
        self._listeners.append(listener)

    def start(self, total: int) -> None:
        self.total = max(0, int(total))
        self.completed = 0
        self.percent = 0
        self.history = []
        self._emit(0)

    def advance(self) -> None:
        self.completed = min(self.completed + 1, self.total)
        self._emit(self.completed * 100 // self.total if self.total else 0)

    def finish_phase(self) -> None:
        if self.total == 0:
            self._emit(100)

    def _emit(self, percent: int) -> None:
        self.percent = max(self.percent, percent)
        self.history.append(self.percent)
        for listener in list(self._listeners):
            self._notify(listener)

    @safe_execute()
    def _notify(self, listener: ProgressListener) -> None:
        listener(self.percent, self.completed, self.total)


class SubmissionOrchestrator:
    """
    提交编排器

    Args:
        uploader: 图片上传接口
        resource: 商品资源接口
        autosaver: 草稿自动保存器，成功后通过它清除草稿与预览元数据
        session_accessor: 当前用户访问器，创建时附带 seller_id
        builder: 提交数据组装器
        config: submission 配置段
    """

    def __init__(
        self,
        uploader: IAssetUploader,
        resource: IProductResource,
        autosaver: Optional[DraftAutosaver] = None,
        session_accessor: Optional[ISessionAccessor] = None,
        builder: Optional[PayloadBuilder] = None,
        config: Optional[dict] = None,
    ):
        self.uploader = uploader
        self.resource = resource
        self.autosaver = autosaver
        self.session_accessor = session_accessor
        self.builder = builder or PayloadBuilder()
        self.config = config if config is not None else get_config().submission
        self.upload_concurrency = max(1, int(self.config.get("upload_concurrency", 3)))
        self.redirect_delay = float(self.config.get("redirect_delay_seconds", 3.0))
        self.progress = UploadProgress()
        self.logger = get_logger()
        self._submitting = False

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    async def submit(
        self,
        draft: ProductDraft,
        stager: AssetStager,
        product_id: Optional[Any] = None,
    ) -> SubmissionResult:
        """
        提交商品

        Args:
            draft: 商品草稿
            stager: 暂存图片集合
            product_id: 编辑已有商品时的ID，None表示创建

        Returns:
            SubmissionResult
        """
        if self._submitting:
            self.logger.warning("Submission ignored: another submission is in flight")
            return SubmissionResult.failed(BUSY_ERROR)

        self._submitting = True
        try:
            return await self._submit(draft, stager, product_id)
        finally:
            self._submitting = False

    @log_execution_time()
    async def _submit(
        self,
        draft: ProductDraft,
        stager: AssetStager,
        product_id: Optional[Any],
    ) -> SubmissionResult:
        field_errors = self.builder.validate(draft)
        if field_errors:
            return self._validation_failure(field_errors)

        pending = stager.pending_uploads()
        self.progress.start(len(pending))
        failures = await self._upload_pending(stager, pending)

        if pending and len(failures) == len(pending):
            self.logger.error(f"All {len(pending)} image uploads failed")
            return SubmissionResult.failed(UPLOAD_ERROR, upload_failures=failures)
        self.progress.finish_phase()

        images = self._finalize_images(stager)
        try:
            payload = self.builder.build(draft, images, extra=self._authorship(product_id))
        except PayloadError as e:
            return self._validation_failure(e.field_errors, failures)

        creating = product_id is None
        self.logger.info(
            f"{'Creating' if creating else 'Updating'} product '{payload['name']}' "
            f"with {len(images)} images"
        )
        try:
            if creating:
                entity = await self.resource.create(payload)
            else:
                entity = await self.resource.update(product_id, payload)
        except ResourceValidationError as e:
            self.logger.warning(f"Product rejected by server: {e.field_errors}")
            return SubmissionResult.failed(
                ", ".join(e.flat_messages()) or e.message,
                field_errors=e.field_errors,
                upload_failures=failures,
                images=images,
            )
        except StorefrontError as e:
            self.logger.error(f"Product submission failed: {e.message}")
            return SubmissionResult.failed(e.message or GENERAL_ERROR, upload_failures=failures, images=images)
        except Exception as e:
            self.logger.error(f"Unexpected product submission error: {e}")
            return SubmissionResult.failed(GENERAL_ERROR, upload_failures=failures, images=images)

        if self.autosaver is not None:
            self.autosaver.clear()

        message = "Product created successfully!" if creating else "Product updated successfully!"
        self.logger.success(message)
        return SubmissionResult.ok(
            entity,
            images=images,
            upload_failures=failures,
            message=message,
            redirect_delay=self.redirect_delay,
        )

    async def _upload_pending(self, stager: AssetStager, pending: list[StagedImage]) -> list[UploadFailure]:
        """
        并发上传待上传图片（有上限），成功的立即标记为已持久化以便重试时复用
        """
        failures: list[UploadFailure] = []
        semaphore = asyncio.Semaphore(self.upload_concurrency)

        async def upload_one(image: StagedImage) -> None:
            handle = stager.handle_for(image)
            if image.stale or handle is None:
                failures.append(UploadFailure(
                    image.image_id,
                    image.display_name,
                    "file is no longer available, please add it again",
                ))
                return

            async with semaphore:
                try:
                    url = await self.uploader.upload(
                        handle.data, handle.filename, handle.content_type, image.angle.value
                    )
                except Exception as e:
                    self.logger.warning(f"Upload failed for {handle.filename}: {e}")
                    failures.append(UploadFailure(image.image_id, handle.filename, str(e) or "upload failed"))
                    return

            if not url:
                failures.append(UploadFailure(image.image_id, handle.filename, "upload returned no URL"))
                return

            stager.mark_uploaded(image.image_id, url)
            self.progress.advance()
            self.logger.debug(f"Uploaded {handle.filename} -> {url}")

        await asyncio.gather(*(upload_one(image) for image in pending))
        return failures

    def _finalize_images(self, stager: AssetStager) -> list[FinalizedImage]:
        """已持久化与远程URL图片按暂存顺序输出，主图上传失败时由第一张接任"""
        images = [
            FinalizedImage(url=image.url, angle=image.angle, is_primary=image.is_primary)
            for image in stager
            if not image.is_local
        ]
        if images and not any(image.is_primary for image in images):
            images[0].is_primary = True
        return images

    def _authorship(self, product_id: Optional[Any]) -> dict[str, Any]:
        if product_id is not None or self.session_accessor is None:
            return {}
        actor = self.session_accessor.current_actor()
        return {"seller_id": actor.id} if actor is not None else {}

    def _validation_failure(
        self,
        field_errors: dict[str, list[str]],
        failures: Optional[list[UploadFailure]] = None,
    ) -> SubmissionResult:
        messages = [message for errors in field_errors.values() for message in errors]
        return SubmissionResult.failed(
            ", ".join(messages),
            field_errors=field_errors,
            upload_failures=failures or [],
        )
