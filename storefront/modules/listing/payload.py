"""
提交数据组装
Product payload builder

按字段声明（必填 / 空值省略 / 空值置null）把草稿转换为接口数据，纯函数，无副作用
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Optional

from storefront.core.error_handler import PayloadError
from storefront.modules.listing.models import (
    FinalizedImage,
    MinOrderUnit,
    ProductCondition,
    ProductDraft,
    WarrantyType,
)


REQUIRED = "required"
OMIT_IF_EMPTY = "omit_if_empty"
NULL_IF_EMPTY = "null_if_empty"


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (dict, list, tuple, set)):
        return not value
    return False


def parse_decimal(value: Any) -> Optional[Decimal]:
    """宽松解析小数，无法解析返回None"""
    if isinstance(value, bool) or is_empty(value):
        return None
    try:
        number = Decimal(str(value).strip().replace(",", ""))
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def parse_int(value: Any) -> Optional[int]:
    """解析整数，小数部分非零视为无效"""
    number = parse_decimal(value)
    if number is None or number != number.to_integral_value():
        return None
    return int(number)


class Coercion:
    """字段类型转换，失败抛出 ValueError"""

    @staticmethod
    def text(value: Any) -> str:
        return str(value).strip()

    @staticmethod
    def decimal(value: Any) -> float:
        number = parse_decimal(value)
        if number is None:
            raise ValueError("must be a number")
        return float(number)

    @staticmethod
    def integer(value: Any) -> int:
        number = parse_int(value)
        if number is None:
            raise ValueError("must be a whole number")
        return number

    @staticmethod
    def boolean(value: Any) -> bool:
        if isinstance(value, str):
            return value.strip().lower() in ("1", "true", "yes", "on")
        return bool(value)

    @staticmethod
    def mapping(value: Any) -> dict:
        if not isinstance(value, dict):
            raise ValueError("must be a key/value mapping")
        return {str(k).strip(): str(v).strip() for k, v in value.items() if str(k).strip()}

    @staticmethod
    def choice(options: list[str]) -> Callable[[Any], str]:
        def convert(value: Any) -> str:
            text = str(value).strip()
            if text not in options:
                raise ValueError(f"must be one of {', '.join(options)}")
            return text
        return convert


@dataclass(frozen=True)
class FieldRule:
    """单个字段的组装规则"""
    name: str
    mode: str
    coerce: Callable[[Any], Any]
    positive: bool = False
    non_negative: bool = False


PRODUCT_FIELD_RULES: tuple[FieldRule, ...] = (
    FieldRule("name", REQUIRED, Coercion.text),
    FieldRule("name_mm", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("description", REQUIRED, Coercion.text),
    FieldRule("description_mm", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("price", REQUIRED, Coercion.decimal, positive=True),
    FieldRule("discount_price", NULL_IF_EMPTY, Coercion.decimal, positive=True),
    FieldRule("discount_start", NULL_IF_EMPTY, Coercion.text),
    FieldRule("discount_end", NULL_IF_EMPTY, Coercion.text),
    FieldRule("quantity", REQUIRED, Coercion.integer, non_negative=True),
    FieldRule("moq", REQUIRED, Coercion.integer, positive=True),
    FieldRule("min_order_unit", REQUIRED, Coercion.choice([u.value for u in MinOrderUnit])),
    FieldRule("lead_time", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("category_id", REQUIRED, Coercion.integer, positive=True),
    FieldRule("specifications", OMIT_IF_EMPTY, Coercion.mapping),
    FieldRule("condition", REQUIRED, Coercion.choice([c.value for c in ProductCondition])),
    FieldRule("brand", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("model", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("color", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("material", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("origin", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("weight_kg", OMIT_IF_EMPTY, Coercion.decimal, non_negative=True),
    FieldRule("warranty", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("warranty_type", OMIT_IF_EMPTY, Coercion.choice([w.value for w in WarrantyType])),
    FieldRule("warranty_period", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("return_policy", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("shipping_cost", OMIT_IF_EMPTY, Coercion.decimal, non_negative=True),
    FieldRule("shipping_time", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("packaging_details", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("additional_info", OMIT_IF_EMPTY, Coercion.text),
    FieldRule("is_active", REQUIRED, Coercion.boolean),
    FieldRule("is_featured", REQUIRED, Coercion.boolean),
    FieldRule("is_new", REQUIRED, Coercion.boolean),
)


class PayloadBuilder:
    """
    商品提交数据组装器

    Args:
        rules: 字段规则，默认使用 PRODUCT_FIELD_RULES
    """

    def __init__(self, rules: tuple[FieldRule, ...] = PRODUCT_FIELD_RULES):
        self.rules = rules

    def validate(self, draft: ProductDraft) -> dict[str, list[str]]:
        """
        校验草稿

        Returns:
            字段 -> 错误信息列表，空字典表示通过
        """
        _, errors = self._assemble(draft)
        return errors

    def build(
        self,
        draft: ProductDraft,
        images: list[FinalizedImage],
        extra: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """
        组装提交数据

        Args:
            draft: 商品草稿
            images: 最终图片列表（按暂存顺序）
            extra: 附加字段（如 seller_id），为None的值不会写入

        Returns:
            接口数据字典

        Raises:
            PayloadError: 字段校验未通过
        """
        payload, errors = self._assemble(draft)
        if errors:
            raise PayloadError(errors)
        payload["images"] = [image.to_dict() for image in images]
        for key, value in (extra or {}).items():
            if value is not None:
                payload[key] = value
        return payload

    def _assemble(self, draft: ProductDraft) -> tuple[dict[str, Any], dict[str, list[str]]]:
        payload: dict[str, Any] = {}
        errors: dict[str, list[str]] = {}

        for rule in self.rules:
            raw = getattr(draft, rule.name)
            if is_empty(raw):
                if rule.mode == REQUIRED:
                    errors.setdefault(rule.name, []).append(f"The {rule.name} field is required.")
                elif rule.mode == NULL_IF_EMPTY:
                    payload[rule.name] = None
                continue

            try:
                value = rule.coerce(raw)
            except ValueError as e:
                errors.setdefault(rule.name, []).append(f"The {rule.name} {e}.")
                continue

            if rule.positive and value <= 0:
                errors.setdefault(rule.name, []).append(f"The {rule.name} must be greater than 0.")
                continue
            if rule.non_negative and value < 0:
                errors.setdefault(rule.name, []).append(f"The {rule.name} must be at least 0.")
                continue

            if rule.mode == OMIT_IF_EMPTY and is_empty(value):
                continue
            payload[rule.name] = value

        return payload, errors
