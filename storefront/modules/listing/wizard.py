"""
商品编辑向导
Listing step wizard

有序步骤 + 每步校验谓词：前进需通过校验，后退不受限，
直接跳转只允许到第1步或前一步已完成的步骤
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Optional

from storefront.core.logger import get_logger
from storefront.modules.listing.models import ProductCondition, ProductDraft
from storefront.modules.listing.payload import is_empty, parse_decimal, parse_int


class ListingStep:
    BASIC_INFO = "basic-info"
    PRICING_INVENTORY = "pricing-inventory"
    MEDIA_SPECS = "media-specs"
    SHIPPING_AND_MORE = "shipping-and-more"


STEP_ORDER: list[str] = [
    ListingStep.BASIC_INFO,
    ListingStep.PRICING_INVENTORY,
    ListingStep.MEDIA_SPECS,
    ListingStep.SHIPPING_AND_MORE,
]

StepValidator = Callable[[], list[str]]


def missing_basic_info(draft: ProductDraft) -> list[str]:
    missing = []
    if is_empty(draft.name):
        missing.append("name")
    if is_empty(draft.description):
        missing.append("description")
    if is_empty(draft.category_id):
        missing.append("category_id")
    return missing


def missing_pricing_inventory(draft: ProductDraft) -> list[str]:
    missing = []
    price = parse_decimal(draft.price)
    if price is None or price <= 0:
        missing.append("price")
    quantity = parse_int(draft.quantity)
    if quantity is None or quantity < 0:
        missing.append("quantity")
    moq = parse_int(draft.moq)
    if moq is None or moq <= 0:
        missing.append("moq")
    if str(draft.condition or "").strip() not in {c.value for c in ProductCondition}:
        missing.append("condition")
    return missing


def missing_media(images: Iterable[Any]) -> list[str]:
    """至少一张可用（未失效）的暂存图片"""
    return [] if any(image.usable for image in images) else ["images"]


def missing_nothing() -> list[str]:
    return []


class StepWizard:
    """
    步骤向导状态机

    Args:
        validators: 步骤标识 -> 返回缺失字段列表的校验函数
        steps: 有序步骤标识
    """

    def __init__(self, validators: dict[str, StepValidator], steps: Optional[list[str]] = None):
        self.steps = list(steps or STEP_ORDER)
        self.validators = dict(validators)
        self.logger = get_logger()
        self.current_index = 0
        self.completed: set[str] = set()

    @property
    def current_step(self) -> str:
        return self.steps[self.current_index]

    @property
    def current_number(self) -> int:
        return self.current_index + 1

    @property
    def is_last_step(self) -> bool:
        return self.current_index == len(self.steps) - 1

    @property
    def can_submit(self) -> bool:
        return self.is_last_step

    def is_completed(self, step: int | str) -> bool:
        index = self._resolve(step)
        return index is not None and self.steps[index] in self.completed

    def missing_fields(self, step: int | str | None = None) -> list[str]:
        """返回指定步骤（默认当前步骤）未满足的字段"""
        index = self.current_index if step is None else self._resolve(step)
        if index is None:
            return []
        validator = self.validators.get(self.steps[index], missing_nothing)
        return list(validator())

    def next(self) -> bool:
        """
        校验当前步骤并前进

        Returns:
            是否通过校验（位于最后一步时通过校验也只标记完成）
        """
        missing = self.missing_fields()
        if missing:
            self.logger.debug(f"Step {self.current_step} blocked, missing: {', '.join(missing)}")
            return False
        self.completed.add(self.current_step)
        self.current_index = min(self.current_index + 1, len(self.steps) - 1)
        return True

    def previous(self) -> bool:
        self.current_index = max(self.current_index - 1, 0)
        return True

    def go_to(self, step: int | str) -> bool:
        """
        直接跳转

        Args:
            step: 从1开始的步骤序号或步骤标识

        Returns:
            是否跳转成功；不满足条件时状态不变
        """
        index = self._resolve(step)
        if index is None:
            return False
        if index == 0 or self.steps[index - 1] in self.completed:
            self.current_index = index
            return True
        return False

    def reset(self) -> None:
        self.current_index = 0
        self.completed.clear()

    def snapshot(self) -> dict[str, Any]:
        return {
            "step": self.current_step,
            "number": self.current_number,
            "completed": [step for step in self.steps if step in self.completed],
        }

    def _resolve(self, step: int | str) -> Optional[int]:
        if isinstance(step, str):
            return self.steps.index(step) if step in self.steps else None
        if isinstance(step, int) and not isinstance(step, bool) and 1 <= step <= len(self.steps):
            return step - 1
        return None
