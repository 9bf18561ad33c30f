"""
学习内容模型

课程/专题来自 API（camelCase 字段），meta.json 为人工维护的静态元数据。
"""
from typing import List, Dict, Optional
from pydantic import BaseModel, Field


class TopicHeading(BaseModel):
    """专题目录项"""
    id: str
    text: str
    level: int


class LearningTopic(BaseModel):
    """学习专题"""
    id: str = Field(alias="_id")
    title: str
    slug: str
    content: Optional[str] = None
    description: Optional[str] = None
    headings: List[TopicHeading] = Field(default_factory=list)
    is_published: bool = Field(default=False, alias="isPublished")

    class Config:
        populate_by_name = True


class SubjectTopic(BaseModel):
    """科目下的专题及排序"""
    topic: LearningTopic
    order: int = 0


class LearningSubject(BaseModel):
    """科目"""
    id: str = Field(alias="_id")
    title: str
    slug: str
    description: Optional[str] = None
    topics: List[SubjectTopic] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class LearningCourse(BaseModel):
    """学习课程"""
    id: str = Field(alias="_id")
    title: str
    slug: str
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    is_published: bool = Field(default=False, alias="isPublished")
    subjects: List[LearningSubject] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class CuratedPage(BaseModel):
    """meta.json 中的一个页面条目"""
    path: str
    title: Optional[str] = None
    description: Optional[str] = None

    @property
    def course_slug(self) -> Optional[str]:
        """所属课程 slug：路径的第三段（/learn/<course>/<topic>）"""
        parts = self.path.split("/")
        return parts[2] if len(parts) > 2 else None


class CuratedMeta(BaseModel):
    """meta.json：courses / topics 均为 slug -> 页面"""
    courses: Dict[str, CuratedPage] = Field(default_factory=dict)
    topics: Dict[str, CuratedPage] = Field(default_factory=dict)
