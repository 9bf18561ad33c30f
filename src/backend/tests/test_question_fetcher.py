"""
题库拉取服务测试

使用 httpx.MockTransport 模拟题库 API。

测试覆盖：
1. 分页终止条件
2. max_questions 上限与截断
3. 缓存与并发调用共享同一次拉取
4. 失败不缓存，下一次调用重试
5. 响应格式校验
6. 课程 / 专题拉取
"""
import sys
import os
import asyncio

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

import httpx
import pytest

from conftest import MockQuestionApi, TEST_API_BASE, make_question  # noqa: E402
from seo_layer.core.config import SiteConfig
from seo_layer.core.exceptions import QuestionFetchError, InvalidResponseError
from seo_layer.services.question_fetcher import QuestionCache, QuestionFetcher


def make_fetcher(api: MockQuestionApi, page_size: int = 10, cache: QuestionCache = None) -> QuestionFetcher:
    config = SiteConfig(api_base=TEST_API_BASE, page_size=page_size)
    return QuestionFetcher(config, cache=cache, client=api.client())


def transport_fetcher(handler) -> QuestionFetcher:
    """直接用自定义 handler 构造 fetcher"""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return QuestionFetcher(SiteConfig(api_base=TEST_API_BASE, page_size=10), client=client)


# ==================== 分页 ====================

class TestPagination:
    """分页拉取"""

    def test_stops_on_short_page(self):
        api = MockQuestionApi(total=25)
        questions = asyncio.run(make_fetcher(api).fetch_all_questions())

        assert len(questions) == 25
        assert [q.question_number for q in questions] == list(range(1, 26))
        assert len(api.question_requests) == 3

    def test_exact_multiple_needs_empty_page(self):
        """总数恰好是分页大小的整数倍时，需要多请求一页空结果"""
        api = MockQuestionApi(total=20)
        questions = asyncio.run(make_fetcher(api).fetch_all_questions())

        assert len(questions) == 20
        assert len(api.question_requests) == 3

    def test_request_params(self):
        api = MockQuestionApi(total=3)
        asyncio.run(make_fetcher(api, page_size=1000).fetch_all_questions())

        request = api.question_requests[0]
        assert str(request.url).startswith(f"{TEST_API_BASE}/api/questions")
        assert request.url.params["page"] == "1"
        assert request.url.params["limit"] == "1000"

    def test_empty_bank(self):
        api = MockQuestionApi(total=0)
        assert asyncio.run(make_fetcher(api).fetch_all_questions()) == []
        assert len(api.question_requests) == 1


class TestMaxQuestions:
    """测试构建上限"""

    def test_truncated_within_first_page(self):
        api = MockQuestionApi(total=2500)
        fetcher = make_fetcher(api, page_size=1000)

        questions = asyncio.run(fetcher.fetch_all_questions(max_questions=50))

        assert len(questions) == 50
        assert len(api.question_requests) == 1
        assert fetcher.cache.questions is None

    def test_stops_once_cap_reached(self):
        api = MockQuestionApi(total=100)
        questions = asyncio.run(make_fetcher(api).fetch_all_questions(max_questions=15))

        assert [q.question_number for q in questions] == list(range(1, 16))
        assert len(api.question_requests) == 2

    def test_capped_call_ignores_cache(self):
        cache = QuestionCache()
        cache.questions = [make_question(999)]
        api = MockQuestionApi(total=20)

        questions = asyncio.run(make_fetcher(api, cache=cache).fetch_all_questions(max_questions=5))

        assert [q.question_number for q in questions] == [1, 2, 3, 4, 5]
        assert [q.question_number for q in cache.questions] == [999]

    @pytest.mark.parametrize("cap", [0, -3])
    def test_non_positive_cap_rejected(self, cap):
        """上限必须为正整数，负数不能被当作切片截掉末尾的题目"""
        api = MockQuestionApi(total=8)

        with pytest.raises(ValueError):
            asyncio.run(make_fetcher(api).fetch_all_questions(max_questions=cap))
        assert api.requests == []

    def test_cap_larger_than_bank(self):
        api = MockQuestionApi(total=8)
        questions = asyncio.run(make_fetcher(api).fetch_all_questions(max_questions=50))
        assert len(questions) == 8


# ==================== 缓存 ====================

class TestCache:
    """缓存与进行中的请求共享"""

    def test_second_call_uses_cache(self):
        api = MockQuestionApi(total=5)
        fetcher = make_fetcher(api)

        async def run():
            first = await fetcher.fetch_all_questions()
            second = await fetcher.fetch_all_questions()
            return first, second

        first, second = asyncio.run(run())
        assert first is second
        assert len(api.question_requests) == 1

    def test_concurrent_calls_share_one_fetch(self):
        api = MockQuestionApi(total=5)
        fetcher = make_fetcher(api)

        async def run():
            return await asyncio.gather(
                fetcher.fetch_all_questions(),
                fetcher.fetch_all_questions(),
                fetcher.fetch_all_questions(),
            )

        results = asyncio.run(run())

        assert len(api.question_requests) == 1
        assert results[0] is results[1] is results[2]
        assert fetcher.cache.inflight is None

    def test_prepopulated_cache(self):
        cache = QuestionCache()
        cache.questions = [make_question(1)]
        api = MockQuestionApi(total=20)

        questions = asyncio.run(make_fetcher(api, cache=cache).fetch_all_questions())

        assert questions is cache.questions
        assert api.requests == []

    def test_invalidate(self):
        cache = QuestionCache()
        cache.questions = [make_question(1)]
        cache.topics = []
        cache.invalidate()

        assert cache.questions is None
        assert cache.topics is None
        assert cache.inflight is None

    def test_caches_are_independent(self):
        """不同构建使用不同缓存对象，互不影响"""
        api = MockQuestionApi(total=3)
        asyncio.run(make_fetcher(api, cache=QuestionCache()).fetch_all_questions())
        asyncio.run(make_fetcher(api, cache=QuestionCache()).fetch_all_questions())

        assert len(api.question_requests) == 2


# ==================== 错误处理 ====================

class TestErrors:
    """失败路径"""

    def test_http_error_raises_and_is_not_cached(self):
        api = MockQuestionApi(total=15, fail_pages={2: 500}, fail_times=1)
        fetcher = make_fetcher(api)

        with pytest.raises(QuestionFetchError) as exc_info:
            asyncio.run(fetcher.fetch_all_questions())

        assert exc_info.value.status_code == 500
        assert exc_info.value.page == 2
        assert fetcher.cache.questions is None
        assert fetcher.cache.inflight is None

        # 下一次调用从头重试
        questions = asyncio.run(fetcher.fetch_all_questions())
        assert len(questions) == 15
        assert len(api.question_requests) == 4

    def test_concurrent_waiters_see_same_failure(self):
        api = MockQuestionApi(total=5, fail_pages={1: 503})
        fetcher = make_fetcher(api)

        async def run():
            return await asyncio.gather(
                fetcher.fetch_all_questions(),
                fetcher.fetch_all_questions(),
                return_exceptions=True,
            )

        results = asyncio.run(run())

        assert all(isinstance(r, QuestionFetchError) for r in results)
        assert len(api.question_requests) == 1
        assert fetcher.cache.inflight is None

    @pytest.mark.parametrize("body", [
        {"data": []},
        {"questions": "not-a-list"},
        [],
    ])
    def test_invalid_response_format(self, body):
        api = MockQuestionApi(body_override=body)
        with pytest.raises(InvalidResponseError, match="Invalid API response format"):
            asyncio.run(make_fetcher(api).fetch_all_questions())

    def test_non_json_body(self):
        fetcher = transport_fetcher(lambda request: httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(InvalidResponseError):
            asyncio.run(fetcher.fetch_all_questions())

    def test_unparseable_question(self):
        api = MockQuestionApi(body_override={"questions": [{"statement": "no number"}]})
        with pytest.raises(InvalidResponseError):
            asyncio.run(make_fetcher(api).fetch_all_questions())

    def test_cancelled_caller_does_not_poison_inflight(self):
        """调用方超时取消后，共享拉取继续完成，后续调用拿到结果"""
        api = MockQuestionApi(total=5)

        async def slow_handler(request):
            await asyncio.sleep(0.05)
            return api.handler(request)

        fetcher = transport_fetcher(slow_handler)

        async def run():
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(fetcher.fetch_all_questions(), 0.01)
            return await fetcher.fetch_all_questions()

        questions = asyncio.run(run())

        assert len(questions) == 5
        assert len(api.question_requests) == 1
        assert fetcher.cache.questions is questions
        assert fetcher.cache.inflight is None

    def test_cancelled_fetch_is_retried(self):
        """共享拉取任务本身被取消（如事件循环结束）后，下一次调用重新拉取"""
        api = MockQuestionApi(total=5)

        async def slow_handler(request):
            await asyncio.sleep(0.05)
            return api.handler(request)

        fetcher = transport_fetcher(slow_handler)

        async def first_build():
            with pytest.raises(asyncio.TimeoutError):
                await asyncio.wait_for(fetcher.fetch_all_questions(), 0.01)

        # asyncio.run 结束时会取消仍在运行的拉取任务
        asyncio.run(first_build())
        assert fetcher.cache.inflight is None

        questions = asyncio.run(fetcher.fetch_all_questions())
        assert len(questions) == 5
        assert fetcher.cache.inflight is None

    def test_stale_cancelled_task_replaced(self):
        fetcher = make_fetcher(MockQuestionApi(total=3))

        async def run():
            stale = asyncio.ensure_future(asyncio.sleep(10))
            stale.cancel()
            with pytest.raises(asyncio.CancelledError):
                await stale
            fetcher.cache.inflight = stale
            return await fetcher.fetch_all_questions()

        questions = asyncio.run(run())
        assert len(questions) == 3
        assert fetcher.cache.inflight is None

    def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        fetcher = transport_fetcher(handler)
        with pytest.raises(QuestionFetchError) as exc_info:
            asyncio.run(fetcher.fetch_all_questions())

        assert exc_info.value.status_code is None
        assert fetcher.cache.questions is None


# ==================== 学习内容 ====================

COURSE_JSON = {
    "_id": "c1",
    "title": "Quantitative Aptitude",
    "slug": "quantitative-aptitude",
    "isPublished": True,
    "subjects": [
        {
            "_id": "s1",
            "title": "Arithmetic",
            "slug": "arithmetic",
            "topics": [
                {"topic": {"_id": "t1", "title": "Percentages", "slug": "percentages"}, "order": 1},
            ],
        },
    ],
}

TOPIC_JSON = {
    "_id": "t1",
    "title": "Percentages",
    "slug": "percentages",
    "content": "## Basics",
    "headings": [{"id": "basics", "text": "Basics", "level": 2}],
    "isPublished": True,
}


class TestLearningContent:
    """课程 / 专题拉取"""

    def test_fetch_course_by_slug(self):
        api = MockQuestionApi(courses={"quantitative-aptitude": COURSE_JSON})
        course = asyncio.run(make_fetcher(api).fetch_course_by_slug("quantitative-aptitude"))

        assert course.id == "c1"
        assert course.is_published is True
        assert course.subjects[0].topics[0].topic.slug == "percentages"

    def test_missing_course_returns_none(self):
        api = MockQuestionApi()
        assert asyncio.run(make_fetcher(api).fetch_course_by_slug("unknown")) is None

    def test_fetch_topic_by_slug(self):
        api = MockQuestionApi(topics={"percentages": TOPIC_JSON})
        topic = asyncio.run(make_fetcher(api).fetch_topic_by_slug("percentages"))

        assert topic.title == "Percentages"
        assert topic.headings[0].level == 2

    def test_server_error_returns_none(self):
        fetcher = transport_fetcher(lambda request: httpx.Response(500))
        assert asyncio.run(fetcher.fetch_topic_by_slug("percentages")) is None

    def test_fetch_all_courses_skips_missing(self):
        api = MockQuestionApi(courses={"quantitative-aptitude": COURSE_JSON})
        fetcher = make_fetcher(api)

        courses = asyncio.run(fetcher.fetch_all_courses())
        assert [c.slug for c in courses] == ["quantitative-aptitude"]
        assert len(api.requests) == 5

        # 第二次读取缓存
        asyncio.run(fetcher.fetch_all_courses())
        assert len(api.requests) == 5

    def test_fetch_all_topics(self):
        api = MockQuestionApi(topics={"percentages": TOPIC_JSON})
        fetcher = make_fetcher(api)

        topics = asyncio.run(fetcher.fetch_all_topics())
        assert [t.slug for t in topics] == ["percentages"]
        assert fetcher.cache.topics == topics

    def test_fetch_all_topics_error_returns_empty(self):
        fetcher = transport_fetcher(lambda request: httpx.Response(500))

        assert asyncio.run(fetcher.fetch_all_topics()) == []
        assert fetcher.cache.topics is None
