"""
模板模块

提供 Jinja2 模板的加载与渲染。
"""

from .loader import TemplateLoader, TemplateRenderError, get_template_loader

__all__ = [
    "TemplateLoader",
    "TemplateRenderError",
    "get_template_loader",
]
