"""
Slug 生成服务

为题目生成可读、稳定、URL 安全的 slug：
- build_base_slug: 单题基础 slug（题干前 8 个词 + 考试 + 子考试 + 专题）
- generate_all_slugs: 批量生成，O(n) 两遍扫描，为重复的基础 slug 追加序号
"""
import re
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from seo_layer.models import Question, ImageStatement

logger = logging.getLogger(__name__)


VISUAL_QUESTION_TOKEN = "visual-question"

STATEMENT_MAX_WORDS = 8
STATEMENT_MAX_LENGTH = 50
PART_MAX_LENGTH = 30
SLUG_MAX_LENGTH = 200
SLUG_TRUNCATE_LENGTH = 180
GENERIC_SUB_EXAM = "General"

_NON_WORD_PATTERN = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9\-]")
_REPEATED_HYPHENS = re.compile(r"-+")


def create_slug(text: str) -> str:
    """
    将任意文本转为 URL 安全的 slug（考试名、专题名等）

    示例: "CGL Tier 1" -> "cgl-tier-1"
    """
    slug = _WHITESPACE_PATTERN.sub("-", (text or "").lower())
    return _INVALID_SLUG_CHARS.sub("", slug)


def fallback_slug(question_number: int) -> str:
    return f"question-{question_number}"


def _statement_token(question: Question) -> str:
    """题干部分：图片题使用固定标识，文本题取前 8 个词，最长 50 字符"""
    if isinstance(question.statement, ImageStatement):
        return VISUAL_QUESTION_TOKEN

    text = (question.statement_text or "").lower()
    words = _NON_WORD_PATTERN.sub("", text).split()
    return "-".join(words[:STATEMENT_MAX_WORDS])[:STATEMENT_MAX_LENGTH]


def _hyphenate(text: str) -> str:
    return _WHITESPACE_PATTERN.sub("-", text.lower())[:PART_MAX_LENGTH]


def _sanitize(slug: str) -> str:
    """最终清理：非法字符替换为 -，合并连续 -，去掉首尾 -"""
    slug = _INVALID_SLUG_CHARS.sub("-", slug)
    slug = _REPEATED_HYPHENS.sub("-", slug)
    return slug.strip("-")


def build_base_slug(question: Question) -> str:
    """
    生成题目的基础 slug（未处理重复）

    缺少题干、考试或专题时退化为 question-<编号>。
    总长度超过 200 时截断到 180 并追加 -q<编号>，保证唯一。

    Args:
        question: 题目

    Returns:
        只包含 [a-z0-9-] 的 slug
    """
    number = question.question_number
    if question.statement is None or not question.exam or not question.topic:
        return fallback_slug(number)

    parts = [_statement_token(question), _hyphenate(question.exam)]

    if question.sub_exam and question.sub_exam != GENERIC_SUB_EXAM:
        parts.append(_hyphenate(question.sub_exam))

    topic_slug = _WHITESPACE_PATTERN.sub("-", _NON_WORD_PATTERN.sub("", question.topic.lower()))[:PART_MAX_LENGTH]
    if topic_slug:
        parts.append(topic_slug)

    slug = "-".join(parts)

    # 控制总长度（Windows 路径限制），超长时用题号保证唯一
    if len(slug) > SLUG_MAX_LENGTH:
        slug = slug[:SLUG_TRUNCATE_LENGTH] + f"-q{number}"

    return _sanitize(slug) or fallback_slug(number)


def _resolve_residual_collisions(slug_map: Dict[int, str]) -> Dict[int, str]:
    """
    处理追加序号后仍然重复的 slug

    例如基础 slug "x" 重复得到 "x-1"，而另一题的基础 slug 恰好也是 "x-1"。
    编号最小的题目保留原 slug，其余追加 -q<编号>。
    """
    owners: Dict[str, List[int]] = defaultdict(list)
    for number in sorted(slug_map):
        owners[slug_map[number]].append(number)

    taken = set(slug_map.values())
    for slug, numbers in owners.items():
        for number in numbers[1:]:
            candidate = f"{slug}-q{number}"
            while candidate in taken:
                candidate = f"{candidate}-q{number}"
            logger.warning(f"slug 冲突: #{number} 与 #{numbers[0]} 同为 {slug}，改用 {candidate}")
            slug_map[number] = candidate
            taken.add(candidate)

    return slug_map


def generate_all_slugs(questions: Iterable[Question]) -> Dict[int, str]:
    """
    批量预计算所有题目的 slug，O(n) 而非 O(n²)

    第一遍按基础 slug 分组题号；第二遍对重复的基础 slug 追加 -<序号>，
    序号为题号升序排列后的位置（从 1 开始），保证每次构建结果一致。

    Returns:
        题号 -> slug
    """
    base_slugs: Dict[int, str] = {}
    groups: Dict[str, List[int]] = defaultdict(list)

    # 第一遍：计算基础 slug 并记录重复
    for question in questions:
        base = build_base_slug(question)
        base_slugs[question.question_number] = base
        groups[base].append(question.question_number)

    # 第二遍：为重复的 slug 按题号顺序追加序号
    slug_map: Dict[int, str] = {}
    for base, numbers in groups.items():
        if len(numbers) == 1:
            slug_map[numbers[0]] = base
            continue
        ranks = {number: index for index, number in enumerate(sorted(set(numbers)), start=1)}
        for number in numbers:
            slug_map[number] = f"{base}-{ranks[number]}"

    # 保持与输入相同的顺序
    ordered = {number: slug_map[number] for number in base_slugs}
    return _resolve_residual_collisions(ordered)


def generate_slug(question: Question, slug_map: Optional[Dict[int, str]] = None) -> str:
    """
    获取单题 slug

    有预计算的 slug_map 时直接查表；否则退化为计算基础 slug（不处理重复）。
    """
    if slug_map is not None:
        return slug_map.get(question.question_number) or fallback_slug(question.question_number)
    return build_base_slug(question)


def generate_quick_slug(question: Question) -> str:
    """相关题目链接使用的快速 slug（不做重复检查）"""
    return build_base_slug(question)
