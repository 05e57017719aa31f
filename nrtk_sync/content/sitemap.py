# File: nrtk_sync/content/sitemap.py
"""nrtk_sync.content.sitemap: построение sitemap.xml по списку историй."""

from __future__ import annotations

from typing import Iterable

from lxml import etree

from nrtk_sync.models import Story

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"
SCHEMA_LOCATION = f"{SITEMAP_NS} {SITEMAP_NS}/sitemap.xsd"
GENERATOR_COMMENT = " Created by Newsroom Toolkit www.newsroomtoolkit.com "


def _tag(name: str) -> str:
    return f"{{{SITEMAP_NS}}}{name}"


def build_sitemap(stories: Iterable[Story]) -> bytes:
    """Собирает XML-документ sitemap: один <url> на историю, в исходном порядке.

    Args:
        stories: истории из payload.

    Returns:
        Байты документа в UTF-8 с XML-декларацией.

    Пример:
    ```python
    from nrtk_sync.content.sitemap import build_sitemap

    xml = build_sitemap(site.stories)
    ```
    """
    root = etree.Element(_tag("urlset"), nsmap={None: SITEMAP_NS, "xsi": XSI_NS})
    root.set(f"{{{XSI_NS}}}schemaLocation", SCHEMA_LOCATION)
    root.append(etree.Comment(GENERATOR_COMMENT))

    for story in stories:
        url = etree.SubElement(root, _tag("url"))
        etree.SubElement(url, _tag("loc")).text = story.canonical_url
        lastmod = story.lastmod()
        if lastmod:
            etree.SubElement(url, _tag("lastmod")).text = lastmod
        etree.SubElement(url, _tag("priority")).text = f"{story.sitemap_priority:g}"

    return etree.tostring(root, xml_declaration=True, encoding="UTF-8")


__all__ = ["build_sitemap", "SITEMAP_NS"]
