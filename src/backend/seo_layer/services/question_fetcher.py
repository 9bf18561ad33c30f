"""
远程题库拉取服务

构建时分页拉取全部题目（每页 1000），并拉取学习课程/专题。

缓存对象 QuestionCache 的生命周期与一次构建绑定，由调用方创建并传入：
- 不限量的并发调用共享同一个进行中的拉取任务
- 限量调用（测试构建）总是重新拉取，不读也不写缓存
- 拉取失败或被取消时不缓存任何结果，并清除进行中的任务，下一次调用从头重试
- 单个调用方被取消不会中断其他调用方共享的拉取
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

import httpx
from pydantic import ValidationError

from seo_layer.core.config import SiteConfig, CORE_COURSE_SLUGS
from seo_layer.core.exceptions import QuestionFetchError, InvalidResponseError
from seo_layer.models import Question, LearningCourse, LearningTopic

logger = logging.getLogger(__name__)


class QuestionCache:
    """
    一次构建内的拉取缓存

    Attributes:
        questions: 已完整拉取的题目列表
        courses: 核心课程列表
        topics: 专题列表
        inflight: 进行中的全量题目拉取任务
    """

    def __init__(self):
        self.questions: Optional[List[Question]] = None
        self.courses: Optional[List[LearningCourse]] = None
        self.topics: Optional[List[LearningTopic]] = None
        self.inflight: Optional["asyncio.Task[List[Question]]"] = None

    def invalidate(self) -> None:
        """清空所有缓存数据和进行中的任务引用"""
        self.questions = None
        self.courses = None
        self.topics = None
        self.inflight = None


class QuestionFetcher:
    """题库 API 客户端"""

    def __init__(
        self,
        config: Optional[SiteConfig] = None,
        cache: Optional[QuestionCache] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Args:
            config: 站点配置（API 地址、分页大小、超时）
            cache: 本次构建的缓存对象，为 None 时新建
            client: 外部提供的 httpx.AsyncClient（测试时注入 MockTransport）
        """
        self.config = config or SiteConfig()
        self.cache = cache if cache is not None else QuestionCache()
        self._client = client

    @property
    def api_base(self) -> str:
        return self.config.api_base.rstrip("/")

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=self.config.timeout) as client:
            yield client

    # ==================== 题目 ====================

    async def fetch_all_questions(self, max_questions: Optional[int] = None) -> List[Question]:
        """
        分页拉取全部题目

        Args:
            max_questions: 可选上限（测试构建用，例如 100），达到上限后截断

        Returns:
            题目列表

        Raises:
            ValueError: max_questions 不是正整数
            QuestionFetchError: 任一页 HTTP 状态非 2xx 或网络错误
            InvalidResponseError: 响应不是包含 questions 数组的对象
        """
        if max_questions is not None:
            if max_questions <= 0:
                raise ValueError(f"max_questions 必须为正整数: {max_questions}")
            return await self._fetch_pages(max_questions)

        if self.cache.questions is not None:
            logger.info("使用缓存的题目数据")
            return self.cache.questions

        task = self.cache.inflight
        if task is not None and task.done():
            # 已结束却没有写入缓存的任务（失败或被取消）不再复用
            logger.warning("丢弃已结束的题目拉取任务，重新拉取")
            self.cache.inflight = None
            task = None

        if task is None:
            task = asyncio.ensure_future(self._fetch_and_cache())
            self.cache.inflight = task
        else:
            logger.info("等待进行中的题目拉取请求...")

        # 单个调用方被取消时不取消共享的拉取任务
        return await asyncio.shield(task)

    async def _fetch_and_cache(self) -> List[Question]:
        """共享拉取任务：成功时写入缓存，结束时（含失败、取消）清除进行中的任务"""
        task = asyncio.current_task()
        try:
            questions = await self._fetch_pages(None)
            if self.cache.inflight is task:
                self.cache.questions = questions
            return questions
        finally:
            if self.cache.inflight is task:
                self.cache.inflight = None

    async def _fetch_pages(self, max_questions: Optional[int]) -> List[Question]:
        all_questions: List[Question] = []
        limit = self.config.page_size
        page = 1

        logger.info(f"开始拉取构建所需题目, API: {self.api_base}")
        if max_questions:
            logger.warning(f"测试模式: 只构建 {max_questions} 道题目")

        async with self._session() as client:
            while True:
                items = await self._fetch_page(client, page, limit)
                all_questions.extend(self._parse_questions(items, page))
                logger.info(f"已拉取 {len(all_questions)} 道题目...")

                if max_questions and len(all_questions) >= max_questions:
                    logger.info(f"已达到测试上限 {max_questions} 道题目")
                    break

                if len(items) < limit:
                    break
                page += 1

        questions = all_questions[:max_questions] if max_questions is not None else all_questions
        logger.info(f"题目拉取完成, 共 {len(questions)} 道")
        return questions

    async def _fetch_page(self, client: httpx.AsyncClient, page: int, limit: int) -> list:
        url = f"{self.api_base}/api/questions"
        logger.debug(f"拉取第 {page} 页: {url}?page={page}&limit={limit}")

        try:
            response = await client.get(url, params={"page": page, "limit": limit})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"拉取第 {page} 页失败: HTTP {status}")
            raise QuestionFetchError(
                f"HTTP {status}: {e.response.reason_phrase}", status_code=status, page=page
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"拉取第 {page} 页失败: {e}")
            raise QuestionFetchError(f"请求题目失败: {e}", page=page) from e

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError("Invalid API response format: body is not JSON", page=page) from e

        items = data.get("questions") if isinstance(data, dict) else None
        if not isinstance(items, list):
            logger.error(f"响应格式错误: {str(data)[:200]}")
            raise InvalidResponseError("Invalid API response format", page=page)
        return items

    @staticmethod
    def _parse_questions(items: list, page: int) -> List[Question]:
        try:
            return [Question.from_api(item) for item in items]
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise InvalidResponseError(f"第 {page} 页包含无法解析的题目: {e}", page=page) from e

    # ==================== 学习内容 ====================

    async def _get_learning_item(self, kind: str, slug: str) -> Optional[dict]:
        url = f"{self.api_base}/api/learning/{kind}/slug/{slug}"
        try:
            async with self._session() as client:
                response = await client.get(url)
                if response.status_code == 404:
                    logger.info(f"未找到 {kind}: {slug}")
                    return None
                response.raise_for_status()
                return response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"拉取 {kind} {slug} 失败: {e}")
            return None

    async def fetch_course_by_slug(self, slug: str) -> Optional[LearningCourse]:
        """按 slug 拉取单个课程（含科目与专题），不存在或失败时返回 None"""
        data = await self._get_learning_item("courses", slug)
        if data is None:
            return None
        try:
            return LearningCourse.model_validate(data)
        except ValidationError as e:
            logger.error(f"课程数据格式错误: {slug}, {e}")
            return None

    async def fetch_topic_by_slug(self, slug: str) -> Optional[LearningTopic]:
        """按 slug 拉取单个专题（含正文），不存在或失败时返回 None"""
        data = await self._get_learning_item("topics", slug)
        if data is None:
            return None
        try:
            return LearningTopic.model_validate(data)
        except ValidationError as e:
            logger.error(f"专题数据格式错误: {slug}, {e}")
            return None

    async def fetch_all_courses(self) -> List[LearningCourse]:
        """拉取全部核心课程，缺失的课程跳过"""
        if self.cache.courses is not None:
            logger.info("使用缓存的课程数据")
            return self.cache.courses

        courses: List[LearningCourse] = []
        for slug in CORE_COURSE_SLUGS:
            course = await self.fetch_course_by_slug(slug)
            if course is None:
                logger.warning(f"课程不存在, 已跳过: {slug}")
                continue
            courses.append(course)

        logger.info(f"已拉取 {len(courses)} 门课程")
        self.cache.courses = courses
        return courses

    async def fetch_all_topics(self) -> List[LearningTopic]:
        """拉取专题列表，失败时返回空列表"""
        if self.cache.topics is not None:
            logger.info("使用缓存的专题数据")
            return self.cache.topics

        url = f"{self.api_base}/api/learning/topics"
        try:
            async with self._session() as client:
                response = await client.get(url)
                response.raise_for_status()
                topics = [LearningTopic.model_validate(item) for item in response.json()]
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.error(f"拉取专题列表失败: {e}")
            return []

        logger.info(f"已拉取 {len(topics)} 个专题")
        self.cache.topics = topics
        return topics
