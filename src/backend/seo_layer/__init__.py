"""
Aptidude SEO 层

构建时预渲染 SEO 数据与 sitemap：分页拉取题库、生成 slug / 标题 / 描述 /
关键词 / schema.org 数据，并组装 sitemap.xml。
"""

__version__ = "0.1.0"
