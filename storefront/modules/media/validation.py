"""
图片校验
Image validation

在暂存前检查本地图片的格式与大小
"""

import io

from PIL import Image, UnidentifiedImageError

from storefront.core.config import get_config
from storefront.modules.media.models import LocalImageFile


# Pillow 识别出的格式 -> 对应的扩展名
PIL_FORMAT_EXTENSIONS = {
    "JPEG": {"jpg", "jpeg"},
    "PNG": {"png"},
    "GIF": {"gif"},
    "WEBP": {"webp"},
}


class ImageValidator:
    """
    图片校验器

    Args:
        config: 媒体配置字典，不指定则读取全局配置
    """

    def __init__(self, config: dict | None = None):
        self.config = config if config is not None else get_config().media
        self.supported_formats = [
            str(fmt).lower().lstrip(".")
            for fmt in self.config.get("supported_formats", ["jpg", "jpeg", "png", "gif", "webp"])
        ]
        self.max_size = int(self.config.get("max_image_size", 2 * 1024 * 1024))

    def validate(self, file: LocalImageFile) -> tuple[bool, str]:
        """
        验证图片格式和大小

        Args:
            file: 本地图片

        Returns:
            (是否有效, 错误原因)
        """
        ext = file.extension
        if ext not in self.supported_formats:
            return False, f"unsupported file type '{ext or file.content_type}'"

        # 未识别的类型交给 Pillow 判断
        if file.content_type not in (None, "application/octet-stream") and not file.content_type.startswith("image/"):
            return False, f"unsupported media type '{file.content_type}'"

        if file.size == 0:
            return False, "file is empty"

        if file.size > self.max_size:
            return False, (
                f"file is too large ({file.size / 1024 / 1024:.2f}MB, "
                f"max {self.max_size / 1024 / 1024:.2f}MB)"
            )

        try:
            with Image.open(io.BytesIO(file.data)) as img:
                detected = img.format or ""
                mode = img.mode
                img.verify()
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as e:
            return False, f"not a readable image ({e})"

        allowed = PIL_FORMAT_EXTENSIONS.get(detected, set())
        if not allowed & set(self.supported_formats):
            return False, f"unsupported image format '{detected.lower() or 'unknown'}'"

        if mode == "CMYK":
            return False, "CMYK color mode is not supported"

        return True, ""
