"""
商品编辑会话
Listing editor session

持有一个草稿、一个图片暂存器和一个步骤向导；持久化策略与外部协作方在构造时注入
"""

from __future__ import annotations

from typing import Any, Optional

from storefront.core.config import get_config
from storefront.core.error_handler import StorefrontError
from storefront.core.logger import get_logger
from storefront.modules.drafts.autosave import DraftAutosaver
from storefront.modules.drafts.store import DraftStore
from storefront.modules.editor.submission import SubmissionOrchestrator, UploadProgress
from storefront.modules.interfaces import (
    IAssetUploader,
    ICategoryLookup,
    IDraftStore,
    IProductResource,
    ISessionAccessor,
)
from storefront.modules.listing.models import (
    Category,
    ProductDraft,
    SubmissionResult,
    decode_product_images,
)
from storefront.modules.listing.wizard import (
    ListingStep,
    StepWizard,
    missing_basic_info,
    missing_media,
    missing_nothing,
    missing_pricing_inventory,
)
from storefront.modules.media.previews import PreviewRegistry
from storefront.modules.media.stager import AssetStager
from storefront.modules.media.validation import ImageValidator


class ListingEditorSession:
    """
    商品编辑会话

    新建模式：草稿和预览元数据从存储恢复，每次修改都写回存储。
    编辑模式：从已有商品初始化，不写存储，避免污染后续新建草稿。

    Args:
        uploader: 图片上传接口
        resource: 商品资源接口
        store: 草稿存储，默认内存存储
        session_accessor: 当前用户访问器
        category_lookup: 分类查询接口
        product: 已有商品实体（编辑模式）
        kind: 资源类型，决定存储键
        config: 含 media/drafts/submission 段的配置字典，缺失段读取全局配置
    """

    def __init__(
        self,
        uploader: IAssetUploader,
        resource: IProductResource,
        store: Optional[IDraftStore] = None,
        session_accessor: Optional[ISessionAccessor] = None,
        category_lookup: Optional[ICategoryLookup] = None,
        product: Optional[dict[str, Any]] = None,
        kind: str = "product",
        config: Optional[dict[str, Any]] = None,
    ):
        config = config or {}
        media_config = config.get("media") or get_config().media
        drafts_config = config.get("drafts") or get_config().drafts
        submission_config = config.get("submission") or get_config().submission

        self.kind = kind
        self.product = dict(product) if product else None
        self.store = store or DraftStore()
        self.category_lookup = category_lookup
        self.logger = get_logger()
        self.closed = False

        self.autosaver = DraftAutosaver(
            self.store, kind, drafts_config.get("autosave_debounce_seconds", 0.0)
        )
        self.stager = AssetStager(
            registry=PreviewRegistry(),
            validator=ImageValidator(media_config),
            default_angle=media_config.get("default_angle", "front"),
        )
        self.draft = self._initial_draft()
        self._restore_images()
        if self.is_new:
            self.stager.add_listener(self._persist_previews)

        self.wizard = StepWizard({
            ListingStep.BASIC_INFO: lambda: missing_basic_info(self.draft),
            ListingStep.PRICING_INVENTORY: lambda: missing_pricing_inventory(self.draft),
            ListingStep.MEDIA_SPECS: lambda: missing_media(self.stager),
            ListingStep.SHIPPING_AND_MORE: missing_nothing,
        })
        self.orchestrator = SubmissionOrchestrator(
            uploader,
            resource,
            autosaver=self.autosaver,
            session_accessor=session_accessor,
            config=submission_config,
        )

    @property
    def is_new(self) -> bool:
        return self.product is None

    @property
    def is_editing(self) -> bool:
        return self.product is not None

    @property
    def product_id(self) -> Optional[Any]:
        return self.draft.product_id

    @property
    def progress(self) -> UploadProgress:
        return self.orchestrator.progress

    @property
    def is_submitting(self) -> bool:
        return self.orchestrator.is_submitting

    def update_field(self, name: str, value: Any) -> None:
        """
        修改单个草稿字段

        Raises:
            KeyError: 未知字段
        """
        self.update_fields(**{name: value})

    def update_fields(self, **values: Any) -> None:
        unknown = [name for name in values if name not in ProductDraft.field_names()]
        if unknown:
            raise KeyError(f"Unknown product field(s): {', '.join(unknown)}")
        for name, value in values.items():
            setattr(self.draft, name, value)
        self._persist_draft()

    def add_specification(self, key: str, value: str) -> bool:
        """键和值都非空时加入规格（同名覆盖）"""
        key = str(key or "").strip()
        value = str(value or "").strip()
        if not key or not value:
            return False
        self.draft.specifications = {**self.draft.specifications, key: value}
        self._persist_draft()
        return True

    def remove_specification(self, key: str) -> bool:
        if key not in self.draft.specifications:
            return False
        specs = dict(self.draft.specifications)
        del specs[key]
        self.draft.specifications = specs
        self._persist_draft()
        return True

    def next(self) -> bool:
        return self.wizard.next()

    def previous(self) -> bool:
        return self.wizard.previous()

    def go_to(self, step: int | str) -> bool:
        return self.wizard.go_to(step)

    def missing_fields(self, step: int | str | None = None) -> list[str]:
        return self.wizard.missing_fields(step)

    async def submit(self) -> SubmissionResult:
        """
        最后一步确认提交

        成功后草稿与预览元数据已被清除，剩余本地预览全部释放。
        """
        if self.closed:
            return SubmissionResult.failed("This editing session has ended")
        if not self.wizard.can_submit:
            return SubmissionResult.failed("Complete all steps before submitting")

        field_errors = {}
        for step in self.wizard.steps:
            for name in self.wizard.missing_fields(step):
                field_errors[name] = [f"The {name} field is required."]
        if field_errors:
            return SubmissionResult.failed(
                ", ".join(errors[0] for errors in field_errors.values()),
                field_errors=field_errors,
            )

        result = await self.orchestrator.submit(self.draft, self.stager, self.product_id)
        if result.success:
            self.stager.teardown()
            self.closed = True
        return result

    def discard(self) -> None:
        """
        放弃编辑

        新建模式清除持久化草稿并回到空白草稿；编辑模式恢复为商品原始数据。
        """
        self.stager.clear_all()
        if self.is_new:
            self.autosaver.clear()
        self.draft = self._initial_draft(ignore_saved=True)
        self._restore_images()
        self.wizard.reset()
        self.logger.info(f"Discarded {self.kind} draft")

    def close(self) -> None:
        """离开编辑器：保留草稿（立即写入待保存内容），释放本地预览"""
        if self.closed:
            return
        if self.is_new:
            self.autosaver.flush()
        self.stager.teardown()
        self.closed = True

    async def category_choices(self) -> list[tuple[int, str]]:
        """
        扁平化的可选分类（仅叶子分类）

        Returns:
            [(分类ID, "父分类 / 子分类"), ...]，查询失败返回空列表
        """
        if self.category_lookup is None:
            return []
        try:
            categories = await self.category_lookup.list_categories()
        except StorefrontError as e:
            self.logger.warning(f"Failed to fetch categories: {e.message}")
            return []
        return flatten_categories(categories)

    def __enter__(self) -> "ListingEditorSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def _initial_draft(self, ignore_saved: bool = False) -> ProductDraft:
        if self.product is not None:
            return ProductDraft.from_product(self.product)
        if not ignore_saved:
            saved = self.store.load(self.kind)
            if saved is not None:
                self.logger.info(f"Restored saved {self.kind} draft")
                return saved
        return ProductDraft()

    def _restore_images(self) -> None:
        if self.product is not None:
            self.stager.restore(decode_product_images(self.product.get("images")), existing=True)
            return
        previews = self.store.load_previews(self.kind)
        if previews:
            self.stager.restore(previews)

    def _persist_draft(self) -> None:
        if self.is_new and not self.closed:
            self.autosaver.schedule(self.draft)

    def _persist_previews(self, stager: AssetStager) -> None:
        if not self.closed:
            self.store.save_previews(self.kind, stager)


def flatten_categories(categories: list[Category], prefix: str = "") -> list[tuple[int, str]]:
    """只有叶子分类可选，父分类仅作为标签前缀"""
    choices = []
    for category in categories:
        label = f"{prefix} / {category.name}" if prefix else category.name
        if category.children:
            choices.extend(flatten_categories(category.children, label))
        else:
            choices.append((category.id, label))
    return choices
