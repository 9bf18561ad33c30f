"""
题目索引服务

一次线性扫描把题目按专题、分类、考试、考试+专题分组，
用于相关题目查找和 sitemap 中的考试/专题页面。
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from seo_layer.models import Question


EXAM_TOPIC_SEPARATOR = "::"


@dataclass
class QuestionIndexes:
    """题目索引表（每次构建重新生成，生成后只读）"""
    by_topic: Dict[str, List[Question]] = field(default_factory=dict)
    by_category: Dict[str, List[Question]] = field(default_factory=dict)
    by_exam: Dict[str, List[Question]] = field(default_factory=dict)
    by_exam_and_topic: Dict[str, List[Question]] = field(default_factory=dict)
    by_question_number: Dict[int, Question] = field(default_factory=dict)


def exam_topic_key(exam: str, topic: str) -> str:
    """考试+专题的组合键，"::" 为保留分隔符"""
    return f"{exam}{EXAM_TOPIC_SEPARATOR}{topic}"


def split_exam_topic_key(key: str) -> Tuple[str, str]:
    exam, _, topic = key.partition(EXAM_TOPIC_SEPARATOR)
    return exam, topic


def build_question_indexes(questions: Iterable[Question]) -> QuestionIndexes:
    """
    构建题目索引

    每道题加入所有它具备对应字段的分组；缺少 topic 的题目不会出现在
    by_topic 和 by_exam_and_topic 中。

    Args:
        questions: 题目列表

    Returns:
        QuestionIndexes
    """
    indexes = QuestionIndexes()

    for q in questions:
        indexes.by_question_number[q.question_number] = q

        if q.topic:
            indexes.by_topic.setdefault(q.topic, []).append(q)

        if q.category:
            indexes.by_category.setdefault(q.category, []).append(q)

        if q.exam:
            indexes.by_exam.setdefault(q.exam, []).append(q)
            if q.topic:
                indexes.by_exam_and_topic.setdefault(exam_topic_key(q.exam, q.topic), []).append(q)

    return indexes


def get_related_questions(question: Question, indexes: QuestionIndexes, limit: int = 6) -> List[Question]:
    """
    基于索引查找相关题目（同专题优先，其次同分类）

    结果按题号去重并排除自身，最多返回 limit 道。
    """
    candidates: List[Question] = []

    if question.topic:
        candidates.extend(indexes.by_topic.get(question.topic, []))
    if question.category:
        candidates.extend(indexes.by_category.get(question.category, []))

    related: Dict[int, Question] = {}
    for candidate in candidates:
        if candidate.question_number == question.question_number:
            continue
        related.setdefault(candidate.question_number, candidate)

    return list(related.values())[:limit]
