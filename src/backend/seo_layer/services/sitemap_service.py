"""
Sitemap 生成服务

按固定顺序组装站点的全部公开 URL：
1. SEO 层静态页面
2. React 应用静态页面
3. 核心课程页面（meta.json）
4. 核心课程下的专题页面（meta.json）
5. 考试页面（题目数据）
6. 考试 + 专题页面（题目数据）
7. 题目页面（按 updatedAt 倒序）
"""
import json
import logging
import time
from dataclasses import dataclass, asdict
from datetime import timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from seo_layer.core.config import SiteConfig, CORE_COURSE_SLUGS
from seo_layer.core.exceptions import CuratedMetaError
from seo_layer.models import Question, QuestionSEO, CuratedMeta
from seo_layer.templates import get_template_loader
from .index_service import QuestionIndexes, build_question_indexes, split_exam_topic_key
from .seo_service import generate_all_question_seo
from .slug_service import create_slug

logger = logging.getLogger(__name__)


SITEMAP_TEMPLATE = "sitemap.xml.j2"
SITEMAP_CONTENT_TYPE = "application/xml"
SITEMAP_CACHE_CONTROL = "public, max-age=3600"


@dataclass(frozen=True)
class StaticPage:
    """静态页面配置"""
    loc: str
    changefreq: str
    priority: str


@dataclass(frozen=True)
class SitemapEntry:
    """sitemap 中的一个 <url>"""
    loc: str
    changefreq: str
    priority: str
    lastmod: Optional[str] = None


@dataclass
class SitemapStats:
    """各部分 URL 数量统计"""
    site_pages: int = 0
    app_pages: int = 0
    course_pages: int = 0
    curated_topic_pages: int = 0
    exam_pages: int = 0
    exam_topic_pages: int = 0
    question_pages: int = 0
    skipped_questions: int = 0

    @property
    def total(self) -> int:
        return (
            self.site_pages + self.app_pages + self.course_pages + self.curated_topic_pages
            + self.exam_pages + self.exam_topic_pages + self.question_pages
        )

    def to_dict(self) -> Dict[str, int]:
        data = asdict(self)
        data["total"] = self.total
        return data


# SEO 层（静态站点）页面
SITE_PAGES: Tuple[StaticPage, ...] = (
    StaticPage("/", "daily", "1.0"),
    StaticPage("/learn", "weekly", "0.95"),
)

# React 应用（/app）页面
APP_PAGES: Tuple[StaticPage, ...] = (
    StaticPage("/app", "daily", "0.9"),
    StaticPage("/app/learn", "weekly", "0.9"),
    StaticPage("/app/practice", "weekly", "0.9"),
    StaticPage("/app/compete", "weekly", "0.9"),
    StaticPage("/app/question-lists", "weekly", "0.8"),
    StaticPage("/app/catmocks", "weekly", "0.9"),
    StaticPage("/app/discuss", "daily", "0.7"),
    StaticPage("/app/blogs", "daily", "0.8"),
    StaticPage("/app/about", "monthly", "0.5"),
    StaticPage("/app/contact", "monthly", "0.5"),
    StaticPage("/app/ratings-explained", "monthly", "0.5"),
    StaticPage("/app/careers", "weekly", "0.6"),
    StaticPage("/app/terms", "yearly", "0.3"),
    StaticPage("/app/privacy", "yearly", "0.3"),
    StaticPage("/app/cookies", "yearly", "0.3"),
)


def load_curated_meta(path) -> CuratedMeta:
    """
    读取 meta.json

    Raises:
        CuratedMetaError: 文件不存在、不是合法 JSON 或结构不符合
    """
    meta_path = Path(path)
    try:
        with open(meta_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
        return CuratedMeta.model_validate(raw)
    except FileNotFoundError as e:
        raise CuratedMetaError(f"meta.json 不存在: {meta_path}") from e
    except OSError as e:
        raise CuratedMetaError(f"无法读取 meta.json: {meta_path}, {e}") from e
    except json.JSONDecodeError as e:
        raise CuratedMetaError(f"meta.json 不是合法 JSON: {e}") from e
    except ValidationError as e:
        raise CuratedMetaError(f"meta.json 结构错误: {e}") from e


def _static_entries(site_url: str, pages: Iterable[StaticPage]) -> List[SitemapEntry]:
    return [SitemapEntry(f"{site_url}{p.loc}", p.changefreq, p.priority) for p in pages]


def _course_entries(site_url: str, meta: CuratedMeta, core_courses: Sequence[str]) -> List[SitemapEntry]:
    """核心课程页面，按核心课程列表顺序，meta.json 中缺失的课程跳过"""
    entries = []
    for slug in core_courses:
        course = meta.courses.get(slug)
        if course is None:
            continue
        entries.append(SitemapEntry(f"{site_url}{course.path}", "weekly", "0.95"))
    return entries


def _curated_topic_entries(site_url: str, meta: CuratedMeta, core_courses: Sequence[str]) -> List[SitemapEntry]:
    """只保留所属课程在核心课程列表中的专题"""
    return [
        SitemapEntry(f"{site_url}{topic.path}", "weekly", "0.9")
        for topic in meta.topics.values()
        if topic.course_slug in core_courses
    ]


def _exam_entries(site_url: str, indexes: QuestionIndexes) -> List[SitemapEntry]:
    return [
        SitemapEntry(f"{site_url}/learn/{create_slug(exam)}", "weekly", "0.85")
        for exam in indexes.by_exam
    ]


def _exam_topic_entries(site_url: str, indexes: QuestionIndexes) -> List[SitemapEntry]:
    entries = []
    for key in indexes.by_exam_and_topic:
        exam, topic = split_exam_topic_key(key)
        entries.append(SitemapEntry(
            f"{site_url}/learn/{create_slug(exam)}/{create_slug(topic)}", "weekly", "0.8"
        ))
    return entries


def _sort_by_updated_desc(questions: Iterable[Question]) -> List[Question]:
    """按 updatedAt 倒序（不修改传入列表），无法解析时间的题目排在最后"""
    def sort_key(q: Question):
        updated = q.updated_at_datetime()
        return (updated is not None, updated.timestamp() if updated else 0.0)

    return sorted(questions, key=sort_key, reverse=True)


def _question_entries(
    site_url: str,
    questions: Iterable[Question],
    seo_map: Dict[int, QuestionSEO],
    stats: SitemapStats,
) -> List[SitemapEntry]:
    entries = []
    for q in _sort_by_updated_desc(questions):
        try:
            seo = seo_map.get(q.question_number)
            if seo is None:
                logger.warning(f"题目 #{q.question_number} 没有 SEO 数据，已跳过")
                stats.skipped_questions += 1
                continue
            updated = q.updated_at_datetime()
            lastmod = updated.astimezone(timezone.utc).date().isoformat() if updated else None
            entries.append(SitemapEntry(f"{site_url}/questions/{seo.slug}", "monthly", "0.7", lastmod))
        except Exception as e:
            logger.error(f"处理题目 #{q.question_number} 失败: {e}")
            stats.skipped_questions += 1
    return entries


def build_sitemap_entries(
    questions: Sequence[Question],
    indexes: QuestionIndexes,
    seo_map: Dict[int, QuestionSEO],
    meta: CuratedMeta,
    site_url: str,
    site_pages: Sequence[StaticPage] = SITE_PAGES,
    app_pages: Sequence[StaticPage] = APP_PAGES,
    core_courses: Sequence[str] = CORE_COURSE_SLUGS,
) -> Tuple[List[SitemapEntry], SitemapStats]:
    """
    按固定顺序组装 sitemap 条目

    Returns:
        (条目列表, 统计信息)
    """
    site_url = site_url.rstrip("/")
    stats = SitemapStats()

    site_entries = _static_entries(site_url, site_pages)
    app_entries = _static_entries(site_url, app_pages)
    course_entries = _course_entries(site_url, meta, core_courses)
    curated_topic_entries = _curated_topic_entries(site_url, meta, core_courses)
    exam_entries = _exam_entries(site_url, indexes)
    exam_topic_entries = _exam_topic_entries(site_url, indexes)
    question_entries = _question_entries(site_url, questions, seo_map, stats)

    stats.site_pages = len(site_entries)
    stats.app_pages = len(app_entries)
    stats.course_pages = len(course_entries)
    stats.curated_topic_pages = len(curated_topic_entries)
    stats.exam_pages = len(exam_entries)
    stats.exam_topic_pages = len(exam_topic_entries)
    stats.question_pages = len(question_entries)

    entries = (
        site_entries + app_entries + course_entries + curated_topic_entries
        + exam_entries + exam_topic_entries + question_entries
    )
    return entries, stats


def render_sitemap(entries: Iterable[SitemapEntry]) -> str:
    """渲染 sitemap XML"""
    return get_template_loader().render(SITEMAP_TEMPLATE, entries=list(entries))


def build_sitemap(
    questions: Sequence[Question],
    indexes: QuestionIndexes,
    seo_map: Dict[int, QuestionSEO],
    meta: CuratedMeta,
    site_url: str,
    site_pages: Sequence[StaticPage] = SITE_PAGES,
    app_pages: Sequence[StaticPage] = APP_PAGES,
) -> Tuple[str, SitemapStats]:
    """
    生成 sitemap XML

    缺少 SEO 数据的题目记录日志后跳过，不影响其余条目。

    Returns:
        (XML 文本, 统计信息)
    """
    entries, stats = build_sitemap_entries(
        questions, indexes, seo_map, meta, site_url,
        site_pages=site_pages, app_pages=app_pages,
    )
    return render_sitemap(entries), stats


def _log_stats(stats: SitemapStats, elapsed: float) -> None:
    logger.info(f"Sitemap 生成完成, 耗时 {elapsed:.2f}s, 共 {stats.total} 个 URL")
    logger.info(f"  - SEO 层页面: {stats.site_pages}")
    logger.info(f"  - 应用页面: {stats.app_pages}")
    logger.info(f"  - 课程页面 (meta.json): {stats.course_pages}")
    logger.info(f"  - 专题页面 (meta.json): {stats.curated_topic_pages}")
    logger.info(f"  - 考试页面: {stats.exam_pages}")
    logger.info(f"  - 考试专题页面: {stats.exam_topic_pages}")
    logger.info(f"  - 题目页面: {stats.question_pages}")
    if stats.skipped_questions:
        logger.warning(f"  - 跳过的题目: {stats.skipped_questions}")


async def generate_sitemap(fetcher, config: Optional[SiteConfig] = None) -> Tuple[str, SitemapStats]:
    """
    完整的 sitemap 构建流程：拉取题目 -> 构建索引 -> 预计算 SEO -> 渲染 XML

    拉取失败时异常直接向上抛出，整个构建失败，不输出不完整的 sitemap。

    Args:
        fetcher: QuestionFetcher 实例
        config: 站点配置，默认使用 fetcher.config

    Returns:
        (XML 文本, 统计信息)
    """
    config = config or fetcher.config
    start_time = time.monotonic()
    logger.info("开始生成 sitemap...")

    meta = load_curated_meta(config.meta_path)
    questions = await fetcher.fetch_all_questions(config.max_questions)
    indexes = build_question_indexes(questions)
    logger.info(f"为 {len(questions)} 道题目生成 sitemap...")

    seo_map = generate_all_question_seo(questions, config)
    xml, stats = build_sitemap(questions, indexes, seo_map, meta, config.site_url)

    _log_stats(stats, time.monotonic() - start_time)
    return xml, stats
