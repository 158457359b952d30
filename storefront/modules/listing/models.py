"""
商品数据模型
Listing Models

定义商品草稿、暂存图片、提交结果等数据结构
"""

from __future__ import annotations

import json
import uuid
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any, Dict, List, Optional


class ProductCondition(str, Enum):
    """商品成色"""
    NEW = "new"
    USED_LIKE_NEW = "used_like_new"
    USED_GOOD = "used_good"
    USED_FAIR = "used_fair"


class MinOrderUnit(str, Enum):
    """起订单位"""
    PIECE = "piece"
    KG = "kg"
    GRAM = "gram"
    METER = "meter"
    SET = "set"
    PACK = "pack"
    BOX = "box"
    PALLET = "pallet"


class WarrantyType(str, Enum):
    """质保类型"""
    MANUFACTURER = "manufacturer"
    SELLER = "seller"
    INTERNATIONAL = "international"
    NO_WARRANTY = "no_warranty"


class ImageAngle(str, Enum):
    """图片拍摄角度"""
    FRONT = "front"
    BACK = "back"
    SIDE = "side"
    TOP = "top"
    OTHER = "other"

    @classmethod
    def parse(cls, value: Any, default: "ImageAngle" = None) -> "ImageAngle":
        """宽松解析，未知角度归为 other"""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if not text:
            return default or cls.FRONT
        # 旧数据里的左右视图统一为侧面
        if text in ("left", "right"):
            return cls.SIDE
        try:
            return cls(text)
        except ValueError:
            return cls.OTHER


@dataclass
class ProductDraft:
    """
    商品草稿

    保存用户在向导中输入的原始值（数字字段允许为字符串），
    类型转换在组装提交数据时统一进行。
    """
    name: str = ""
    name_mm: str = ""
    description: str = ""
    description_mm: str = ""
    price: Any = ""
    discount_price: Any = ""
    discount_start: str = ""
    discount_end: str = ""
    quantity: Any = 0
    moq: Any = 1
    min_order_unit: str = MinOrderUnit.PIECE.value
    lead_time: str = ""
    category_id: Any = ""
    specifications: Dict[str, str] = field(default_factory=dict)
    condition: str = ProductCondition.NEW.value
    brand: str = ""
    model: str = ""
    color: str = ""
    material: str = ""
    origin: str = ""
    weight_kg: Any = ""
    warranty: str = ""
    warranty_type: str = ""
    warranty_period: str = ""
    return_policy: str = ""
    shipping_cost: Any = ""
    shipping_time: str = ""
    packaging_details: str = ""
    additional_info: str = ""
    is_active: bool = True
    is_featured: bool = False
    is_new: bool = True
    product_id: Optional[Any] = None

    @classmethod
    def field_names(cls) -> List[str]:
        """可编辑字段（不含资源标识）"""
        return [f.name for f in fields(cls) if f.name != "product_id"]

    @property
    def is_editing(self) -> bool:
        return self.product_id is not None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("product_id", None)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProductDraft":
        """从字典构建草稿，忽略未知键"""
        known = set(cls.field_names())
        values = {k: v for k, v in data.items() if k in known}
        specs = values.get("specifications")
        values["specifications"] = dict(specs) if isinstance(specs, dict) else {}
        return cls(**values)

    @classmethod
    def from_product(cls, product: Dict[str, Any]) -> "ProductDraft":
        """
        从已有商品资源构建编辑草稿

        Args:
            product: 远程接口返回的商品实体

        Returns:
            携带商品标识的草稿
        """
        data = dict(product)
        data["specifications"] = decode_specifications(data.get("specifications"))
        draft = cls.from_dict(data)
        for key in ("price", "discount_price", "weight_kg", "shipping_cost", "category_id"):
            if getattr(draft, key) is None:
                setattr(draft, key, "")
        draft.product_id = product.get("id")
        return draft


@dataclass
class StagedImage:
    """暂存图片（与上传状态无关）"""
    url: str
    angle: ImageAngle = ImageAngle.FRONT
    is_primary: bool = False
    is_local: bool = False
    is_existing: bool = False
    filename: Optional[str] = None
    stale: bool = False
    image_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def pending_upload(self) -> bool:
        """本地尚未上传的图片（含已失效的）"""
        return self.is_local and not self.is_existing

    @property
    def usable(self) -> bool:
        return not self.stale

    @property
    def display_name(self) -> str:
        return self.filename or self.url

    def to_preview_metadata(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "angle": self.angle.value,
            "is_primary": self.is_primary,
            "is_existing": self.is_existing,
        }


@dataclass
class FinalizedImage:
    """提交给商品资源接口的图片条目"""
    url: str
    angle: ImageAngle
    is_primary: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "angle": self.angle.value, "is_primary": self.is_primary}


@dataclass
class UploadFailure:
    """单张图片上传失败记录"""
    image_id: str
    filename: str
    reason: str

    def __str__(self) -> str:
        return f"{self.filename}: {self.reason}"


@dataclass
class SubmissionResult:
    """提交结果"""
    success: bool
    product: Optional[Dict[str, Any]] = None
    images: List[FinalizedImage] = field(default_factory=list)
    upload_failures: List[UploadFailure] = field(default_factory=list)
    field_errors: Dict[str, List[str]] = field(default_factory=dict)
    error_message: Optional[str] = None
    message: Optional[str] = None
    redirect_delay: float = 0.0

    @classmethod
    def ok(cls, product: Dict[str, Any], **kwargs) -> "SubmissionResult":
        return cls(success=True, product=product, **kwargs)

    @classmethod
    def failed(cls, error_message: Optional[str] = None, **kwargs) -> "SubmissionResult":
        return cls(success=False, error_message=error_message, **kwargs)

    @property
    def has_field_errors(self) -> bool:
        return bool(self.field_errors)


@dataclass
class Category:
    """商品分类树节点"""
    id: int
    name: str
    children: List["Category"] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        children = data.get("children") or []
        return cls(
            id=int(data["id"]),
            name=str(data.get("name") or data.get("display_name") or ""),
            children=parse_categories(children),
        )


def parse_categories(items: Any) -> List[Category]:
    """解析分类列表，跳过非对象或缺少有效ID的节点（含子分类）"""
    if not isinstance(items, list):
        return []
    categories = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            categories.append(Category.from_dict(item))
        except (KeyError, TypeError, ValueError):
            continue
    return categories


@dataclass
class Actor:
    """当前登录用户"""
    id: Any
    roles: List[str] = field(default_factory=list)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def decode_specifications(raw: Any) -> Dict[str, str]:
    """规格字段可能是JSON字符串，解析失败视为空"""
    if isinstance(raw, dict):
        return dict(raw)
    if isinstance(raw, str) and raw.strip():
        try:
            parsed = json.loads(raw)
        except ValueError:
            return {}
        return dict(parsed) if isinstance(parsed, dict) else {}
    return {}


def decode_product_images(raw: Any) -> List[Dict[str, Any]]:
    """
    解析已有商品的图片字段

    支持列表（字符串或字典元素）与JSON字符串；
    无法解析的字符串当作唯一一张主图的URL。
    """
    if raw is None or raw == "":
        return []
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return [{"url": raw, "angle": ImageAngle.FRONT.value, "is_primary": True}]
        raw = parsed if isinstance(parsed, list) else [parsed]

    images: List[Dict[str, Any]] = []
    for item in raw:
        if isinstance(item, str):
            images.append({"url": item})
        elif isinstance(item, dict) and item.get("url"):
            images.append(dict(item))
    return images
