"""
Models package
Export all data models
"""

from .question import (
    Question,
    QuestionOption,
    Statement,
    TextStatement,
    ImageStatement,
    classify_statement,
    is_image_url,
    parse_timestamp,
)
from .seo import QuestionSEO, ExamKeywords, FlatKeywords, SubExamKeywords
from .learning import (
    LearningCourse,
    LearningSubject,
    LearningTopic,
    SubjectTopic,
    TopicHeading,
    CuratedPage,
    CuratedMeta,
)

__all__ = [
    "Question",
    "QuestionOption",
    "Statement",
    "TextStatement",
    "ImageStatement",
    "classify_statement",
    "is_image_url",
    "parse_timestamp",
    "QuestionSEO",
    "ExamKeywords",
    "FlatKeywords",
    "SubExamKeywords",
    "LearningCourse",
    "LearningSubject",
    "LearningTopic",
    "SubjectTopic",
    "TopicHeading",
    "CuratedPage",
    "CuratedMeta",
]
