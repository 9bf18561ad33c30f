"""
SEO 数据结构
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, Union


@dataclass(frozen=True)
class QuestionSEO:
    """单道题目的 SEO 元数据（每次构建计算一次，不持久化）"""
    slug: str
    title: str
    description: str
    keywords: List[str]
    canonical: str
    og_image: str
    schema: Dict[str, Any]


@dataclass(frozen=True)
class FlatKeywords:
    """考试级关键词列表"""
    keywords: List[str]

    def resolve(self, sub_exam: str = None) -> List[str]:
        return list(self.keywords)


@dataclass(frozen=True)
class SubExamKeywords:
    """按子考试划分的关键词，未命中时使用 default"""
    by_sub_exam: Dict[str, List[str]]
    default: List[str] = field(default_factory=list)

    def resolve(self, sub_exam: str = None) -> List[str]:
        if sub_exam and sub_exam in self.by_sub_exam:
            return list(self.by_sub_exam[sub_exam])
        return list(self.default)


ExamKeywords = Union[FlatKeywords, SubExamKeywords]
