"""
Sitemap API
"""
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import Response

from seo_layer.core.config import get_site_config
from seo_layer.core.exceptions import SeoLayerError
from seo_layer.services import QuestionFetcher, generate_sitemap
from seo_layer.services.sitemap_service import SITEMAP_CONTENT_TYPE, SITEMAP_CACHE_CONTROL


router = APIRouter(tags=["Sitemap"])


def get_fetcher(request: Request) -> QuestionFetcher:
    """从应用状态获取 fetcher，未设置时按环境变量新建"""
    fetcher = getattr(request.app.state, "fetcher", None)
    if fetcher is None:
        fetcher = QuestionFetcher(get_site_config())
    return fetcher


@router.get("/sitemap.xml")
async def get_sitemap(request: Request):
    """
    生成完整 sitemap

    Returns:
        application/xml，缓存 1 小时

    Raises:
        502: 题库拉取失败或元数据不可用时（不返回不完整的 sitemap）
    """
    fetcher = get_fetcher(request)
    try:
        xml, _ = await generate_sitemap(fetcher)
    except SeoLayerError as e:
        raise HTTPException(status_code=502, detail=f"Sitemap 生成失败: {e}")

    return Response(
        content=xml,
        media_type=SITEMAP_CONTENT_TYPE,
        headers={"Cache-Control": SITEMAP_CACHE_CONTROL},
    )
