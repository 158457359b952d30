"""
服务接口抽象层
Service Interface Layer

定义商品编辑器依赖的所有外部协作方接口，实现依赖倒置原则
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class IStorageBackend(ABC):
    """客户端持久化键值存储接口。"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """读取键对应的序列化字符串，不存在返回None"""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """覆盖写入"""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """删除键，不存在时忽略"""
        pass


class IDraftStore(ABC):
    """草稿持久化策略接口。"""

    @abstractmethod
    def load(self, kind: str) -> Any:
        """
        读取指定资源类型的草稿

        Args:
            kind: 资源类型

        Returns:
            ProductDraft，不存在或无法解析时返回None
        """
        pass

    @abstractmethod
    def save(self, kind: str, draft: Any) -> None:
        """覆盖保存草稿"""
        pass

    @abstractmethod
    def clear(self, kind: str) -> None:
        """清除草稿"""
        pass

    @abstractmethod
    def load_previews(self, kind: str) -> Optional[list[dict[str, Any]]]:
        """读取图片预览元数据"""
        pass

    @abstractmethod
    def save_previews(self, kind: str, images: Any) -> None:
        """保存图片预览元数据（不含二进制）"""
        pass

    @abstractmethod
    def clear_previews(self, kind: str) -> None:
        """清除图片预览元数据"""
        pass

    def discard(self, kind: str) -> None:
        """清除草稿与预览元数据"""
        self.clear(kind)
        self.clear_previews(kind)


class ICategoryLookup(ABC):
    """商品分类查询接口。"""

    @abstractmethod
    async def list_categories(self) -> list[Any]:
        """
        获取可选分类树

        Returns:
            List[Category]: 顶层分类，子分类在 children 中
        """
        pass


class IAssetUploader(ABC):
    """图片上传接口。"""

    @abstractmethod
    async def upload(self, data: bytes, filename: str, content_type: str, angle: str) -> str:
        """
        上传单张图片

        Args:
            data: 图片二进制
            filename: 文件名
            content_type: MIME类型
            angle: 拍摄角度

        Returns:
            持久化后的图片URL

        Raises:
            StorefrontError: 上传失败
        """
        pass


class IProductResource(ABC):
    """商品资源接口。"""

    @abstractmethod
    async def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        创建商品

        Args:
            payload: 完整商品数据

        Returns:
            持久化后的商品实体

        Raises:
            ResourceValidationError: 字段校验失败
            TransportError: 网络或其他错误
        """
        pass

    @abstractmethod
    async def update(self, product_id: Any, payload: dict[str, Any]) -> dict[str, Any]:
        """
        更新商品

        Args:
            product_id: 商品ID
            payload: 完整商品数据

        Returns:
            持久化后的商品实体
        """
        pass


class ISessionAccessor(ABC):
    """当前会话用户访问接口。"""

    @abstractmethod
    def current_actor(self) -> Any:
        """
        获取当前用户

        Returns:
            Actor，未登录返回None
        """
        pass
