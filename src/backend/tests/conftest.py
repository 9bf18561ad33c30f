"""
Pytest 配置和通用 Fixtures

提供题目构造工具、Mock 题库 API（httpx.MockTransport）和 meta.json 测试数据
"""
import json
import pytest
import httpx
from typing import Any, Dict, List, Optional

from seo_layer.core.config import SiteConfig
from seo_layer.models import Question


TEST_API_BASE = "http://api.test"


# ==================== 题目构造 ====================

def question_payload(question_number: int, **overrides: Any) -> Dict[str, Any]:
    """
    构造 API 格式（camelCase）的题目字典

    overrides 中值为 None 的字段会被移除，用于模拟缺失字段
    """
    data = {
        "questionNumber": question_number,
        "statement": "What is 2+2?",
        "type": "MCQ",
        "options": [{"type": "text", "content": "3"}, {"type": "text", "content": "4"}],
        "explanation": "2+2=4",
        "exam": "CAT",
        "difficulty": "Easy",
        "topic": "Arithmetic",
        "tags": [],
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
    }
    data.update(overrides)
    return {k: v for k, v in data.items() if v is not None}


def make_question(question_number: int, **overrides: Any) -> Question:
    """构造题目对象"""
    return Question.from_api(question_payload(question_number, **overrides))


@pytest.fixture
def hcf_question():
    """HCF 示例题目"""
    return make_question(
        7,
        statement="Find HCF of 12 and 18",
        exam="SSC",
        topic="Number System",
        type="Integer",
        difficulty="Easy",
        options=None,
    )


@pytest.fixture
def sitemap_questions():
    """sitemap 测试用题目（updatedAt 各不相同，第 3 题缺少 topic）"""
    return [
        make_question(
            1, statement="Find HCF of 12 and 18", exam="SSC", topic="Number System",
            updatedAt="2024-03-01T08:00:00.000Z",
        ),
        make_question(2, updatedAt="2024-05-10T23:30:00.000Z"),
        make_question(3, exam="Banking", topic=None, updatedAt="2023-12-31T10:00:00.000Z"),
    ]


# ==================== meta.json ====================

SAMPLE_META = {
    "courses": {
        "logical-reasoning": {"path": "/learn/logical-reasoning", "title": "Logical Reasoning"},
        "general-awareness": {"path": "/learn/general-awareness", "title": "General Awareness"},
        "quantitative-aptitude": {"path": "/learn/quantitative-aptitude", "title": "Quantitative Aptitude"},
    },
    "topics": {
        "percentages": {"path": "/learn/quantitative-aptitude/percentages"},
        "current-affairs": {"path": "/learn/general-awareness/current-affairs"},
        "syllogisms": {"path": "/learn/logical-reasoning/syllogisms"},
    },
}


@pytest.fixture
def meta_path(tmp_path):
    """写入临时 meta.json"""
    path = tmp_path / "meta.json"
    path.write_text(json.dumps(SAMPLE_META), encoding="utf-8")
    return path


# ==================== Mock 题库 API ====================

class MockQuestionApi:
    """
    Mock 题库 API，在内存中按页返回题目，记录所有请求

    Args:
        total: 题目总数
        fail_pages: 返回错误状态码的页码 -> 状态码
        fail_times: 失败次数上限（用于测试失败后重试）
        body_override: 直接替换 /api/questions 的响应体
        courses: slug -> 课程 JSON
        topics: slug -> 专题 JSON
    """

    def __init__(
        self,
        total: int = 0,
        fail_pages: Optional[Dict[int, int]] = None,
        fail_times: Optional[int] = None,
        body_override: Any = None,
        courses: Optional[Dict[str, Dict]] = None,
        topics: Optional[Dict[str, Dict]] = None,
    ):
        self.total = total
        self.fail_pages = fail_pages or {}
        self.fail_times = fail_times
        self.body_override = body_override
        self.courses = courses or {}
        self.topics = topics or {}
        self.requests: List[httpx.Request] = []
        self._failures = 0

    @property
    def question_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/api/questions"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/questions":
            return self._questions(request)
        if path.startswith("/api/learning/courses/slug/"):
            slug = path.rsplit("/", 1)[-1]
            if slug in self.courses:
                return httpx.Response(200, json=self.courses[slug])
            return httpx.Response(404, json={"message": "Course not found"})
        if path.startswith("/api/learning/topics/slug/"):
            slug = path.rsplit("/", 1)[-1]
            if slug in self.topics:
                return httpx.Response(200, json=self.topics[slug])
            return httpx.Response(404, json={"message": "Topic not found"})
        if path == "/api/learning/topics":
            return httpx.Response(200, json=list(self.topics.values()))
        return httpx.Response(404)

    def _questions(self, request: httpx.Request) -> httpx.Response:
        page = int(request.url.params["page"])
        limit = int(request.url.params["limit"])

        if page in self.fail_pages:
            if self.fail_times is None or self._failures < self.fail_times:
                self._failures += 1
                return httpx.Response(self.fail_pages[page], json={"message": "error"})

        if self.body_override is not None:
            return httpx.Response(200, json=self.body_override)

        start = (page - 1) * limit + 1
        end = min(page * limit, self.total)
        items = [question_payload(n) for n in range(start, end + 1)]
        return httpx.Response(200, json={"questions": items})

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


@pytest.fixture
def site_config(meta_path):
    """测试用站点配置（小分页便于测试翻页）"""
    return SiteConfig(api_base=TEST_API_BASE, page_size=10, meta_path=str(meta_path))
