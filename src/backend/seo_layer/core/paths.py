"""
路径配置常量

统一管理项目中的目录路径，避免硬编码。
"""
import os
from pathlib import Path


PACKAGE_DIR = Path(__file__).resolve().parents[1]


def _get_project_root() -> Path:
    """获取项目根目录"""
    for parent in Path(__file__).resolve().parents:
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parents[4]


# ==================== 目录常量 ====================

# 内置数据目录（meta.json 等静态元数据）
DATA_DIR = PACKAGE_DIR / "data"

# Jinja2 模板目录
TEMPLATES_DIR = PACKAGE_DIR / "templates"

# 构建输出目录
DIST_DIR_NAME = "dist"
DIST_DIR = Path(os.environ.get(
    "SEO_DIST_DIR",
    str(_get_project_root() / DIST_DIR_NAME)
))


# ==================== 文件常量 ====================

META_JSON_FILENAME = "meta.json"
META_JSON_PATH = DATA_DIR / META_JSON_FILENAME

SITEMAP_FILENAME = "sitemap.xml"


def get_sitemap_output_path(output_dir: Path = None) -> Path:
    """获取 sitemap.xml 输出路径"""
    return Path(output_dir or DIST_DIR) / SITEMAP_FILENAME
