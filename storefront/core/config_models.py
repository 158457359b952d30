"""
配置模型与验证
Configuration Models and Validation

使用Pydantic进行配置验证
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class DraftBackend(str, Enum):
    """草稿存储后端枚举"""
    MEMORY = "memory"
    JSON = "json"


class AppConfig(BaseModel):
    """应用配置模型"""
    name: str = Field(default="storefront", description="应用名称")
    version: str = Field(default="1.0.0", description="版本号")
    debug: bool = Field(default=False, description="调试模式")
    log_level: str = Field(default="INFO", description="日志级别")
    data_dir: str = Field(default="data", description="数据目录")
    logs_dir: str = Field(default="logs", description="日志目录")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v):
        """验证日志级别"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}, got {v}")
        return v


class ApiConfig(BaseModel):
    """远程API配置模型"""
    base_url: str = Field(default="http://localhost:8000/api/v1/", description="API基础URL")
    timeout: int = Field(default=30, ge=1, le=300, description="请求超时时间（秒）")
    token: Optional[str] = Field(default=None, description="Bearer令牌")
    upload_path: str = Field(default="products/upload-image", description="图片上传路径")
    products_path: str = Field(default="products", description="商品资源路径")
    categories_path: str = Field(default="categories", description="分类查询路径")


class MediaConfig(BaseModel):
    """媒体处理配置模型"""
    max_image_size: int = Field(default=2097152, ge=1024, le=10485760, description="最大图片大小（字节）")
    supported_formats: List[str] = Field(
        default=["jpg", "jpeg", "png", "gif", "webp"],
        description="支持的图片格式"
    )
    default_angle: str = Field(default="front", description="新图片默认拍摄角度")

    @field_validator("supported_formats")
    @classmethod
    def normalize_formats(cls, v):
        """统一为小写且去掉前导点"""
        return [str(fmt).lower().lstrip(".") for fmt in v]


class DraftsConfig(BaseModel):
    """草稿持久化配置模型"""
    backend: DraftBackend = DraftBackend.JSON
    path: str = Field(default="data/drafts.json", description="JSON存储路径")
    autosave_debounce_seconds: float = Field(default=0.5, ge=0.0, le=30.0, description="自动保存防抖间隔（秒）")


class SubmissionConfig(BaseModel):
    """提交流程配置模型"""
    upload_concurrency: int = Field(default=3, ge=1, le=16, description="图片并发上传数")
    redirect_delay_seconds: float = Field(default=3.0, ge=0.0, le=60.0, description="成功后跳转延迟（秒）")


class ConfigModel(BaseModel):
    """完整配置模型"""
    app: AppConfig = Field(default_factory=AppConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    media: MediaConfig = Field(default_factory=MediaConfig)
    drafts: DraftsConfig = Field(default_factory=DraftsConfig)
    submission: SubmissionConfig = Field(default_factory=SubmissionConfig)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ConfigModel':
        """从字典创建配置"""
        return cls(**data)
