"""
模板加载器

使用 Jinja2 渲染站点生成的静态文件（sitemap.xml 等）。
XML/HTML 模板自动转义，保证 <loc> 中的 & 等字符合法。
"""

from pathlib import Path
from typing import Any, Optional
import threading

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError, select_autoescape

from seo_layer.core.exceptions import SeoLayerError
from seo_layer.core.paths import TEMPLATES_DIR


class TemplateRenderError(SeoLayerError):
    """模板渲染异常"""
    pass


class TemplateLoader:
    """
    模板加载器

    功能：
    - 从模板目录加载 Jinja2 模板
    - 对 .xml / .html 模板自动转义
    - 线程安全的模板缓存（Jinja2 Environment 自带）

    使用示例：
        loader = TemplateLoader()
        xml = loader.render("sitemap.xml.j2", sections=[...])
    """

    def __init__(self, templates_dir: Optional[Path] = None, auto_reload: bool = False):
        """
        初始化模板加载器

        Args:
            templates_dir: 模板目录路径，默认为 seo_layer/templates/
            auto_reload: 是否在模板文件变更时自动重载
        """
        self.templates_dir = Path(templates_dir) if templates_dir else TEMPLATES_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["xml", "xml.j2", "html", "html.j2"]),
            undefined=StrictUndefined,
            auto_reload=auto_reload,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, name: str, **context: Any) -> str:
        """
        渲染模板

        Args:
            name: 模板文件名（相对于模板目录）
            **context: 模板变量

        Returns:
            渲染后的文本

        Raises:
            TemplateRenderError: 模板不存在或渲染失败
        """
        try:
            template = self.env.get_template(name)
            return template.render(**context)
        except TemplateError as e:
            raise TemplateRenderError(f"Failed to render template '{name}': {e}") from e


_loader: Optional[TemplateLoader] = None
_loader_lock = threading.Lock()


def get_template_loader() -> TemplateLoader:
    """获取全局模板加载器实例"""
    global _loader
    with _loader_lock:
        if _loader is None:
            _loader = TemplateLoader()
        return _loader
