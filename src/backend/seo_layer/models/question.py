"""
题目数据模型

题目在拉取时一次性解析为不可变对象，题干在入库时即区分文本与图片，
下游（slug、标题、描述、schema）不再重复做图片判断。
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Any, Optional, Tuple, Union


IMAGE_EXTENSION_PATTERN = re.compile(r"\.(jpg|jpeg|png|gif|webp|svg|bmp)(\?|$)", re.IGNORECASE)
IMAGE_HOST_MARKERS = ("cloudinary.com", "res.cloudinary.com")

# ISO 时间戳中的小数秒（fromisoformat 在 3.10 只接受 3 或 6 位）
FRACTION_PATTERN = re.compile(r"\.(\d+)")


def is_image_url(text: Any) -> bool:
    """
    判断题干是否为图片地址

    满足任一条件即视为图片：
    - http:// 或 https:// 开头
    - 包含常见图片扩展名（后接 ? 或结尾）
    - 包含图床域名（cloudinary）
    """
    if not isinstance(text, str):
        return False
    lower = text.lower()
    if lower.startswith("http://") or lower.startswith("https://"):
        return True
    if IMAGE_EXTENSION_PATTERN.search(lower):
        return True
    return any(marker in lower for marker in IMAGE_HOST_MARKERS)


@dataclass(frozen=True)
class TextStatement:
    """文本题干"""
    text: str


@dataclass(frozen=True)
class ImageStatement:
    """图片题干"""
    url: str


Statement = Union[TextStatement, ImageStatement]


def classify_statement(raw: Any) -> Optional[Statement]:
    """将 API 返回的原始题干解析为 TextStatement / ImageStatement，空题干返回 None"""
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        # 非字符串题干（如富文本对象）无法作为文本展示，按图片题处理
        return ImageStatement(url=str(raw))
    if is_image_url(raw):
        return ImageStatement(url=raw)
    return TextStatement(text=raw)


def _optional_str(value: Any) -> Optional[str]:
    """分类字段统一为字符串（数字等转为文本），空值返回 None"""
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class QuestionOption:
    """选项"""
    content: str
    type: Optional[str] = None          # text | image，缺省视为 text

    def is_text_content(self) -> bool:
        """是否为可用于描述文本的选项（文本类型、非空、非链接）"""
        is_text = not self.type or self.type == "text"
        return is_text and bool(self.content) and not self.content.startswith("http")

    @classmethod
    def from_api(cls, data: Any) -> "QuestionOption":
        if isinstance(data, dict):
            content = data.get("content")
            return cls(
                content=content if isinstance(content, str) else "",
                type=data.get("type"),
            )
        return cls(content=data if isinstance(data, str) else "")


@dataclass(frozen=True)
class Question:
    """
    题目

    question_number 是所有索引和 slug 冲突表唯一稳定的关联键。
    """
    question_number: int
    statement: Optional[Statement] = None
    type: str = ""
    options: Tuple[QuestionOption, ...] = ()
    passage: Optional[str] = None
    explanation: str = ""
    answer: Any = None
    exam: Optional[str] = None
    sub_exam: Optional[str] = None
    section: Optional[str] = None
    category: Optional[str] = None
    topic: Optional[str] = None
    difficulty: Optional[str] = None
    tags: Tuple[str, ...] = ()
    created_at: Any = ""               # API 原始值：ISO 字符串或毫秒时间戳
    updated_at: Any = ""

    @property
    def statement_text(self) -> Optional[str]:
        """文本题干内容，图片题或无题干时返回 None"""
        if isinstance(self.statement, TextStatement):
            return self.statement.text
        return None

    @property
    def is_visual(self) -> bool:
        return isinstance(self.statement, ImageStatement)

    def updated_at_datetime(self) -> Optional[datetime]:
        """解析 updatedAt，无法解析时返回 None"""
        return parse_timestamp(self.updated_at)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Question":
        """从 API 返回的字典（camelCase 字段）构建题目"""
        options = data.get("options") or []
        tags = data.get("tags") or []
        return cls(
            question_number=int(data["questionNumber"]),
            statement=classify_statement(data.get("statement")),
            type=_optional_str(data.get("type")) or "",
            options=tuple(QuestionOption.from_api(o) for o in options),
            passage=data.get("passage"),
            explanation=data.get("explanation") or "",
            answer=data.get("answer"),
            exam=_optional_str(data.get("exam")),
            sub_exam=_optional_str(data.get("subExam")),
            section=_optional_str(data.get("section")),
            category=_optional_str(data.get("category")),
            topic=_optional_str(data.get("topic")),
            difficulty=_optional_str(data.get("difficulty")),
            tags=tuple(str(t) for t in tags if t),
            created_at=data.get("createdAt") or "",
            updated_at=data.get("updatedAt") or "",
        )


def _normalize_fraction(match: "re.Match") -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    解析 updatedAt / createdAt

    - ISO 8601 字符串（支持 Z 后缀，小数秒统一为 6 位）
    - 数字视为毫秒时间戳

    无时区信息的时间按 UTC 处理，便于统一比较；无法解析时返回 None。
    """
    if isinstance(value, bool) or not value:
        return None

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if not isinstance(value, str):
        return None

    text = FRACTION_PATTERN.sub(_normalize_fraction, value.strip().replace("Z", "+00:00"), count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
