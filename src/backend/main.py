"""
FastAPI应用入口

预览/部署时提供 sitemap.xml；静态构建使用 scripts/build_sitemap.py。
"""
from dotenv import load_dotenv
from pathlib import Path
import logging

# 加载环境变量 - 优先从根目录加载，回退到当前目录
root_env = Path(__file__).parent.parent.parent / ".env"
if root_env.exists():
    load_dotenv(root_env)
else:
    load_dotenv()

logger = logging.getLogger(__name__)

from fastapi import FastAPI
from seo_layer import __version__
from seo_layer.api import sitemap
from seo_layer.core.config import get_site_config


app = FastAPI(
    title="Aptidude SEO Layer",
    description="Build-time SEO metadata and sitemap generation",
    version=__version__,
)

app.include_router(sitemap.router)

logger.info(f"API 地址: {get_site_config().api_base}")


@app.get("/health")
async def health():
    """健康检查"""
    config = get_site_config()
    return {
        "status": "healthy",
        "api_base": config.api_base,
        "site_url": config.site_url,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
