"""
构建 sitemap 脚本

拉取全部题目并生成 sitemap.xml，写入构建输出目录（默认 dist/）。

用法:
    python scripts/build_sitemap.py
    python scripts/build_sitemap.py --output-dir public --max-questions 100
"""
import os
import sys
import asyncio
import argparse
import logging
from pathlib import Path

# 添加后端目录到 Python 路径
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src', 'backend'))

from dotenv import load_dotenv

ENV_PATH = Path(__file__).resolve().parent.parent / ".env"
if ENV_PATH.exists():
    load_dotenv(ENV_PATH)

from seo_layer.core.config import get_site_config
from seo_layer.core.exceptions import SeoLayerError
from seo_layer.core.paths import get_sitemap_output_path
from seo_layer.services import QuestionFetcher, QuestionCache, generate_sitemap

logger = logging.getLogger("build_sitemap")


async def build(output_dir: str = None, max_questions: int = None, api_url: str = None) -> dict:
    """
    生成 sitemap.xml 并写入磁盘

    Args:
        output_dir: 输出目录，默认 dist/
        max_questions: 测试构建时的题目上限
        api_url: 覆盖环境变量中的 API 地址

    Returns:
        dict: 各部分 URL 统计
    """
    config = get_site_config()
    if api_url:
        config.api_base = api_url.rstrip("/")
    if max_questions is not None:
        config.max_questions = max_questions

    fetcher = QuestionFetcher(config, cache=QuestionCache())
    xml, stats = await generate_sitemap(fetcher, config)

    output_path = get_sitemap_output_path(Path(output_dir) if output_dir else None)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(xml, encoding="utf-8")
    logger.info(f"sitemap 已写入: {output_path}")

    return stats.to_dict()


def positive_int(value: str) -> int:
    """argparse 类型：正整数"""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"不是整数: {value}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"必须为正整数: {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='拉取题库并生成 sitemap.xml')
    parser.add_argument('--output-dir', '-o', help='输出目录（默认 dist/）')
    parser.add_argument('--max-questions', '-n', type=positive_int, help='只构建前 N 道题目（测试用）')
    parser.add_argument('--api-url', help='题库 API 地址（默认读取 API_URL / PUBLIC_API_URL）')
    parser.add_argument('--verbose', '-v', action='store_true', help='输出调试日志')
    return parser


def main():
    """
    主函数
    """
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    print("🗺️  开始构建 sitemap...\n")

    try:
        statistics = asyncio.run(build(args.output_dir, args.max_questions, args.api_url))
    except SeoLayerError as e:
        print(f"❌ 构建失败: {e}")
        sys.exit(1)

    print("\n" + "=" * 50)
    print("📊 构建统计")
    print("=" * 50)
    for name, count in statistics.items():
        print(f"{name}: {count}")
    print("=" * 50 + "\n")
    print("✅ 构建完成！")


if __name__ == "__main__":
    main()
