"""
Services package
"""

from .slug_service import (
    create_slug,
    build_base_slug,
    generate_all_slugs,
    generate_slug,
    generate_quick_slug,
)
from .seo_service import (
    generate_title,
    generate_description,
    generate_keywords,
    generate_schema,
    generate_question_seo,
    generate_all_question_seo,
)
from .index_service import QuestionIndexes, build_question_indexes, get_related_questions
from .question_fetcher import QuestionCache, QuestionFetcher
from .sitemap_service import (
    SitemapEntry,
    SitemapStats,
    build_sitemap,
    build_sitemap_entries,
    generate_sitemap,
    load_curated_meta,
)

__all__ = [
    "create_slug",
    "build_base_slug",
    "generate_all_slugs",
    "generate_slug",
    "generate_quick_slug",
    "generate_title",
    "generate_description",
    "generate_keywords",
    "generate_schema",
    "generate_question_seo",
    "generate_all_question_seo",
    "QuestionIndexes",
    "build_question_indexes",
    "get_related_questions",
    "QuestionCache",
    "QuestionFetcher",
    "SitemapEntry",
    "SitemapStats",
    "build_sitemap",
    "build_sitemap_entries",
    "generate_sitemap",
    "load_curated_meta",
]
