from .config import SiteConfig, get_site_config, resolve_api_base, CORE_COURSE_SLUGS
from .exceptions import SeoLayerError, QuestionFetchError, InvalidResponseError, CuratedMetaError

__all__ = [
    "SiteConfig",
    "get_site_config",
    "resolve_api_base",
    "CORE_COURSE_SLUGS",
    "SeoLayerError",
    "QuestionFetchError",
    "InvalidResponseError",
    "CuratedMetaError",
]
