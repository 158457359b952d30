#!/usr/bin/env python3
"""
商城商品编辑器 - 示例脚本
Storefront Listing Editor - Demo Script

演示如何通过编辑会话创建一个商品（需要可访问的商城API，见 config/config.example.yaml）
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.core.logger import get_logger
from storefront.modules.api.client import StorefrontApiClient
from storefront.modules.editor import open_listing_editor
from storefront.modules.media import LocalImageFile


async def demo_create_product(image_paths):
    """演示：按步骤填写并提交商品"""
    print("\n" + "=" * 50)
    print("演示: 创建商品")
    print("=" * 50)

    logger = get_logger()

    async with StorefrontApiClient() as client:
        session = open_listing_editor(client)
        session.progress.add_listener(lambda percent, done, total: print(f"  上传进度: {percent}% ({done}/{total})"))

        choices = await session.category_choices()
        for category_id, label in choices[:10]:
            print(f"  [{category_id}] {label}")
        if not choices:
            logger.warning("No categories available, is the API reachable?")
            session.close()
            return

        session.update_fields(
            name="Portland Cement 50kg",
            description="Grade 42.5 ordinary portland cement, 50kg bag",
            category_id=choices[0][0],
        )
        session.next()

        session.update_fields(price="12.50", quantity=500, moq=10, min_order_unit="pack")
        session.next()

        report = session.stager.add_files([LocalImageFile.from_path(p) for p in image_paths])
        for error in report.errors:
            print(f"  跳过图片: {error}")
        session.add_specification("Grade", "42.5")
        if not session.next():
            print(f"  缺少字段: {', '.join(session.missing_fields())}")
            session.close()
            return
        session.next()

        result = await session.submit()

    print("\n提交结果:")
    print(f"  成功: {result.success}")
    if result.success:
        print(f"  {result.message}（{result.redirect_delay:.0f}秒后跳转）")
    else:
        print(f"  错误: {result.error_message}")
    for failure in result.upload_failures:
        print(f"  上传失败: {failure}")


if __name__ == "__main__":
    asyncio.run(demo_create_product(sys.argv[1:]))
