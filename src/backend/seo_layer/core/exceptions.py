"""
SEO 层异常定义
"""
from typing import Optional


class SeoLayerError(Exception):
    """SEO 层异常基类"""
    pass


class QuestionFetchError(SeoLayerError):
    """拉取题目失败（HTTP 非 2xx 或网络错误）"""

    def __init__(self, message: str, status_code: Optional[int] = None, page: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
        self.page = page


class InvalidResponseError(QuestionFetchError):
    """API 返回的数据格式不正确"""
    pass


class CuratedMetaError(SeoLayerError):
    """meta.json 读取或校验失败"""
    pass
