"""
站点构建配置模块

统一管理 SEO 层构建时的配置，支持环境变量。
配置优先级：环境变量 > 默认值
"""

import os
from dataclasses import dataclass, field
from typing import Optional

from .paths import META_JSON_PATH


DEFAULT_API_BASE = "http://localhost:8080"
DEFAULT_SITE_URL = "https://aptidude.in"

# API 地址的两个来源，按顺序查找
API_BASE_ENV_VARS = ("API_URL", "PUBLIC_API_URL")

# 核心学习课程（课程页与 sitemap 只包含这 5 门）
CORE_COURSE_SLUGS = (
    "quantitative-aptitude",
    "logical-reasoning",
    "reading-comprehension",
    "verbal-ability",
    "data-interpretation",
)


@dataclass
class SiteConfig:
    """
    站点构建配置

    Attributes:
        api_base: 题库 API 基础地址
        site_url: 站点根地址（canonical / sitemap 使用）
        og_image: 默认社交分享图片路径
        page_size: 分页拉取题目时每页数量
        timeout: 请求超时时间（秒）
        max_questions: 测试模式下最多构建的题目数（None 表示全部）
        meta_path: 课程/专题元数据 meta.json 路径
    """
    api_base: str = DEFAULT_API_BASE
    site_url: str = DEFAULT_SITE_URL
    og_image: str = "/logo-social.png"
    page_size: int = 1000
    timeout: float = 30.0
    max_questions: Optional[int] = None
    meta_path: str = field(default_factory=lambda: str(META_JSON_PATH))

    @property
    def app_url(self) -> str:
        return f"{self.site_url}/app"


def resolve_api_base() -> str:
    """
    解析 API 基础地址

    依次检查 API_URL、PUBLIC_API_URL，都未设置时使用本地开发地址。
    """
    for name in API_BASE_ENV_VARS:
        value = os.getenv(name)
        if value:
            return value.rstrip("/")
    return DEFAULT_API_BASE


def get_site_config() -> SiteConfig:
    """
    从环境变量获取站点构建配置

    环境变量：
        API_URL / PUBLIC_API_URL: 题库 API 地址
        SITE_URL: 站点根地址
        SEO_OG_IMAGE: 默认分享图片
        QUESTIONS_PAGE_SIZE: 分页大小
        API_TIMEOUT: 请求超时时间
        BUILD_MAX_QUESTIONS: 测试构建时的题目上限
        SEO_META_PATH: meta.json 路径

    Returns:
        SiteConfig 配置对象

    Raises:
        ValueError: 数值类环境变量格式错误时
    """
    max_questions_env = os.getenv("BUILD_MAX_QUESTIONS", "").strip()
    max_questions = int(max_questions_env) if max_questions_env else None
    if max_questions is not None and max_questions <= 0:
        raise ValueError("BUILD_MAX_QUESTIONS 必须为正整数")

    return SiteConfig(
        api_base=resolve_api_base(),
        site_url=os.getenv("SITE_URL", DEFAULT_SITE_URL).rstrip("/"),
        og_image=os.getenv("SEO_OG_IMAGE", "/logo-social.png"),
        page_size=int(os.getenv("QUESTIONS_PAGE_SIZE", "1000")),
        timeout=float(os.getenv("API_TIMEOUT", "30.0")),
        max_questions=max_questions,
        meta_path=os.getenv("SEO_META_PATH", str(META_JSON_PATH)),
    )
