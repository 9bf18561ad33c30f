"""
SEO 元数据生成服务

为每道题目生成标题、描述、关键词、canonical 地址和 schema.org 结构化数据。
所有函数都不会抛出异常，字段缺失时退化为默认值。
"""
import logging
from typing import Dict, Iterable, List, Optional, Any

from seo_layer.core.config import SiteConfig
from seo_layer.models import (
    Question,
    QuestionSEO,
    ExamKeywords,
    FlatKeywords,
    SubExamKeywords,
)
from .slug_service import generate_all_slugs, generate_slug

logger = logging.getLogger(__name__)


TITLE_MAX_LENGTH = 120
SCHEMA_TEXT_MAX_LENGTH = 100
DESCRIPTION_MAX_OPTIONS = 5
CHOICE_TYPES = ("MCQ", "Multiple Correct")
INTEGER_TYPE = "Integer"
CALL_TO_ACTION = "Solve and get step-by-step solution."


# ==================== 关键词表 ====================

EXAM_KEYWORD_MAP: Dict[str, ExamKeywords] = {
    "CAT": FlatKeywords([
        "cat pyq", "cat previous year questions", "cat quant questions",
        "cat aptitude practice", "cat exam preparation",
    ]),
    "Placements": FlatKeywords([
        "placement aptitude questions", "campus placement practice",
        "placement papers", "aptitude for placements",
    ]),
    "SSC": SubExamKeywords(
        by_sub_exam={
            "CGL Tier 1": ["ssc cgl pyq", "ssc cgl tier 1 questions"],
            "CGL Tier 2": ["ssc cgl tier 2 questions", "ssc cgl tier 2 pyq"],
            "CHSL": ["ssc chsl questions", "ssc chsl pyq"],
        },
        default=["ssc aptitude questions", "ssc previous year papers"],
    ),
    "Banking": SubExamKeywords(
        by_sub_exam={
            "IBPS PO": ["ibps po questions", "ibps po pyq"],
            "SBI PO": ["sbi po questions", "sbi po quant"],
            "RBI Grade B": ["rbi grade b questions"],
        },
        default=["bank exam aptitude", "bank pyq"],
    ),
    "Railways": FlatKeywords(["railway exam aptitude", "rrb ntpc questions", "rrb pyq"]),
    "CUET": FlatKeywords(["cuet gat questions", "cuet aptitude practice", "cuet pyq"]),
}

UNIVERSAL_KEYWORDS = [
    "aptitude questions", "aptitude practice", "previous year questions",
    "quantitative aptitude", "logical reasoning questions", "competitive exam questions", "pyq",
]


def get_exam_specific_keywords(exam: Optional[str], sub_exam: Optional[str] = None) -> List[str]:
    """按考试（及子考试）查找关键词，未知考试返回空列表"""
    if not exam:
        return []
    entry = EXAM_KEYWORD_MAP.get(exam)
    if entry is None:
        return []
    return entry.resolve(sub_exam)


def _text(value: Optional[str]) -> str:
    return value or ""


def _display_statement(question: Question) -> str:
    """标题/schema 使用的题干文本，图片题使用 "<专题> Question" """
    text = question.statement_text
    if text is not None:
        return text
    return f"{_text(question.topic)} Question"


# ==================== 生成函数 ====================

def generate_keywords(question: Question) -> List[str]:
    """
    生成关键词（具体在前，通用在后）

    顺序：层级关键词（考试、子考试、板块、分类、专题、题型、难度、标签）
    -> 考试专属关键词 -> 通用关键词，重复项保留首次出现的位置。
    """
    hierarchical = [
        question.exam,
        question.sub_exam,
        question.section,
        question.category,
        question.topic,
        question.type,
        question.difficulty,
        *question.tags,
    ]
    hierarchical_keywords = [k.lower() for k in hierarchical if k]
    exam_keywords = get_exam_specific_keywords(question.exam, question.sub_exam)

    return list(dict.fromkeys(hierarchical_keywords + exam_keywords + UNIVERSAL_KEYWORDS))


def generate_title(question: Question) -> str:
    """
    生成 SEO 标题（不超过 120 字符，在词边界截断）

    格式: "<题干> | <考试> <难度> | <专题>"
    """
    statement = _display_statement(question)
    exam_part = f"{_text(question.exam)} {_text(question.difficulty)}"
    topic_part = _text(question.topic)

    suffix = f" | {exam_part} | {topic_part}"
    # 4 个字符预留给 "... "
    max_statement_length = TITLE_MAX_LENGTH - len(suffix) - 4

    truncated = statement
    if len(statement) > max_statement_length:
        truncated = statement[:max(max_statement_length, 0)]
        last_space = truncated.rfind(" ")
        if last_space > 0:
            truncated = truncated[:last_space]
        truncated += "..."

    return f"{truncated}{suffix}"[:TITLE_MAX_LENGTH]


def generate_description(question: Question) -> str:
    """生成 meta description：题干 + 选项/答案类型 + 考试信息 + 引导语"""
    parts: List[str] = []

    text = question.statement_text
    if text is not None:
        parts.append(text + " ")
    else:
        parts.append(f"{_text(question.topic)} visual question. ")

    if question.type in CHOICE_TYPES and question.options:
        text_options = [o for o in question.options if o.is_text_content()][:DESCRIPTION_MAX_OPTIONS]
        if text_options:
            options_text = " ".join(
                f"{chr(ord('A') + i)}) {option.content}" for i, option in enumerate(text_options)
            )
            parts.append(f"Options: {options_text}. ")
    elif question.type == INTEGER_TYPE:
        parts.append("Answer type: Integer. ")

    parts.append(f"{_text(question.exam)} {_text(question.difficulty)} {_text(question.topic)} question. ")
    parts.append(CALL_TO_ACTION)
    return "".join(parts)


def generate_schema(question: Question) -> Dict[str, Any]:
    """生成 schema.org Question 结构化数据"""
    text = question.statement_text
    if text is not None:
        question_text = text[:SCHEMA_TEXT_MAX_LENGTH]
    else:
        question_text = f"{_text(question.topic)} Question"

    return {
        "@context": "https://schema.org",
        "@type": "Question",
        "name": question_text,
        "text": question_text,
        "eduQuestionType": "Integer answer" if question.type == INTEGER_TYPE else "Multiple choice",
        "educationalLevel": _text(question.difficulty),
        "about": {"@type": "Thing", "name": _text(question.topic)},
    }


def generate_question_seo(
    question: Question,
    slug_map: Optional[Dict[int, str]] = None,
    config: Optional[SiteConfig] = None,
) -> QuestionSEO:
    """
    生成单道题目的 SEO 数据

    Args:
        question: 题目
        slug_map: generate_all_slugs 预计算的 slug 表（批量场景必须传入）
        config: 站点配置，默认使用 SiteConfig()

    Returns:
        QuestionSEO
    """
    config = config or SiteConfig()
    slug = generate_slug(question, slug_map)
    return QuestionSEO(
        slug=slug,
        title=generate_title(question),
        description=generate_description(question),
        keywords=generate_keywords(question),
        canonical=f"{config.site_url}/questions/{slug}",
        og_image=config.og_image,
        schema=generate_schema(question),
    )


def generate_all_question_seo(
    questions: Iterable[Question],
    config: Optional[SiteConfig] = None,
) -> Dict[int, QuestionSEO]:
    """
    批量生成所有题目的 SEO 数据

    slug 表只计算一次并复用，避免对每道题重复计算全量 slug。

    Returns:
        题号 -> QuestionSEO
    """
    questions = list(questions)
    config = config or SiteConfig()
    slug_map = generate_all_slugs(questions)

    seo_map = {
        q.question_number: generate_question_seo(q, slug_map, config)
        for q in questions
    }
    logger.info(f"已预计算 {len(seo_map)} 道题目的 SEO 数据")
    return seo_map
