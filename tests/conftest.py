"""
测试工具和fixtures
Test Utilities and Fixtures
"""

import io
import sys
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from PIL import Image

sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.core.config import Config
from storefront.core.logger import Logger
from storefront.modules.drafts.store import DraftStore, MemoryBackend
from storefront.modules.listing.models import ProductDraft
from storefront.modules.media.models import LocalImageFile


@pytest.fixture
def temp_dir():
    """创建临时目录"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_config_file(temp_dir):
    """创建临时配置文件"""
    config_file = temp_dir / "config.yaml"
    config_content = """
app:
  name: "storefront-test"
  version: "1.0.0"
  debug: true
  log_level: "DEBUG"

api:
  base_url: "https://shop.test/api/v1/"
  timeout: 10
  token: "test_token"

media:
  max_image_size: 1048576
  supported_formats: ["jpg", "jpeg", "png"]
  default_angle: "front"

drafts:
  backend: "memory"
  autosave_debounce_seconds: 0

submission:
  upload_concurrency: 2
  redirect_delay_seconds: 3
"""
    config_file.write_text(config_content)
    return config_file


@pytest.fixture
def config(temp_config_file):
    """测试配置实例"""
    config = Config(str(temp_config_file))
    yield config


@pytest.fixture
def logger(temp_dir, config):
    """测试日志实例"""
    logger = Logger()
    yield logger


def make_image_bytes(fmt: str = "PNG", size=(8, 8), mode: str = "RGB") -> bytes:
    """用 Pillow 生成真实图片二进制"""
    buffer = io.BytesIO()
    Image.new(mode, size, color=0).save(buffer, format=fmt)
    return buffer.getvalue()


def make_image_file(filename: str = "photo.png", fmt: str = "PNG", **kwargs) -> LocalImageFile:
    """创建可通过校验的本地图片"""
    return LocalImageFile(filename=filename, data=make_image_bytes(fmt, **kwargs))


@pytest.fixture
def image_file():
    """本地图片工厂"""
    return make_image_file


@pytest.fixture
def media_config():
    return {
        "max_image_size": 2 * 1024 * 1024,
        "supported_formats": ["jpg", "jpeg", "png", "gif", "webp"],
        "default_angle": "front",
    }


@pytest.fixture
def drafts_config():
    return {"backend": "memory", "autosave_debounce_seconds": 0}


@pytest.fixture
def submission_config():
    return {"upload_concurrency": 3, "redirect_delay_seconds": 3}


@pytest.fixture
def editor_config(media_config, drafts_config, submission_config):
    """会话配置（无防抖，直接写入）"""
    return {"media": media_config, "drafts": drafts_config, "submission": submission_config}


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def draft_store(memory_backend):
    return DraftStore(memory_backend)


@pytest.fixture
def mock_uploader():
    """Mock 图片上传接口：按调用顺序返回持久化URL"""
    uploader = AsyncMock()
    counter = {"n": 0}

    async def upload(data, filename, content_type, angle):
        counter["n"] += 1
        return f"https://cdn.test/products/{counter['n']}-{filename}"

    uploader.upload = AsyncMock(side_effect=upload)
    return uploader


@pytest.fixture
def mock_resource():
    """Mock 商品资源接口：回显提交数据"""
    resource = AsyncMock()

    async def create(payload):
        return {"id": 101, **payload}

    async def update(product_id, payload):
        return {"id": product_id, **payload}

    resource.create = AsyncMock(side_effect=create)
    resource.update = AsyncMock(side_effect=update)
    return resource


@pytest.fixture
def sample_product_data():
    """示例商品数据（接口实体格式）"""
    return {
        "id": 42,
        "name": "Portland Cement 50kg",
        "description": "Grade 42.5 ordinary portland cement",
        "price": "12.50",
        "discount_price": None,
        "quantity": 500,
        "moq": 10,
        "min_order_unit": "pack",
        "category_id": 7,
        "condition": "new",
        "specifications": '{"Grade": "42.5", "Weight": "50kg"}',
        "images": [
            {"url": "https://cdn.test/products/cement-front.jpg", "angle": "front", "is_primary": True},
            {"url": "https://cdn.test/products/cement-back.jpg", "angle": "back", "is_primary": False},
        ],
        "is_active": True,
        "is_featured": False,
        "is_new": True,
    }


@pytest.fixture
def valid_draft():
    """通过全部字段校验的草稿"""
    return ProductDraft(
        name="Portland Cement 50kg",
        description="Grade 42.5 ordinary portland cement",
        price="12.50",
        quantity="500",
        moq="10",
        category_id="7",
        condition="new",
    )
