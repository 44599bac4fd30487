"""
SEO Service
Sitemap XML and page meta tags

Author: TM3
Date: 2026-03-07
"""
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

from toolsy.core.config import settings
from toolsy.domain.product import Product

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"
DEFAULT_IMAGE = "/dtg.jpeg"
META_DESCRIPTION_LENGTH = 160


@dataclass
class SitemapUrl:
    loc: str
    lastmod: Optional[str] = None
    changefreq: Optional[str] = None
    priority: Optional[float] = None


# (path, changefreq, priority)
STATIC_PAGES = [
    ('/', 'daily', 1.0),
    ('/tools', 'daily', 0.9),
    ('/why-us', 'monthly', 0.7),
    ('/about', 'monthly', 0.6),
    ('/privacy-policy', 'monthly', 0.5),
    ('/refund-policy', 'monthly', 0.5),
]


def _base_url(base_url: Optional[str] = None) -> str:
    return (base_url or settings.SITE_URL).rstrip('/')


def build_sitemap_urls(
    products: Iterable[Product],
    base_url: Optional[str] = None,
    today: Optional[date] = None
) -> List[SitemapUrl]:
    """Static pages first, then one URL per product with a slug"""
    base = _base_url(base_url)
    current_date = (today or date.today()).isoformat()

    urls = [
        SitemapUrl(f"{base}{path}", current_date, changefreq, priority)
        for path, changefreq, priority in STATIC_PAGES
    ]
    for product in products:
        if not product.slug:
            continue
        lastmod = product.updated_at.date().isoformat() if product.updated_at else current_date
        urls.append(SitemapUrl(f"{base}/product/{product.slug}", lastmod, 'weekly', 0.8))
    return urls


def render_sitemap(urls: List[SitemapUrl]) -> str:
    lines = ['<?xml version="1.0" encoding="UTF-8"?>', f'<urlset xmlns="{SITEMAP_NAMESPACE}">']
    for url in urls:
        lines.append('  <url>')
        lines.append(f'    <loc>{escape(url.loc)}</loc>')
        if url.lastmod:
            lines.append(f'    <lastmod>{url.lastmod}</lastmod>')
        if url.changefreq:
            lines.append(f'    <changefreq>{url.changefreq}</changefreq>')
        if url.priority is not None:
            lines.append(f'    <priority>{url.priority}</priority>')
        lines.append('  </url>')
    lines.append('</urlset>')
    return '\n'.join(lines) + '\n'


def generate_sitemap(products: Iterable[Product], base_url: Optional[str] = None, today: Optional[date] = None) -> str:
    return render_sitemap(build_sitemap_urls(products, base_url=base_url, today=today))


def build_meta_tags(
    title: str,
    description: str,
    canonical_path: str,
    image: Optional[str] = None,
    page_type: str = 'website',
    keywords: Optional[str] = None,
    noindex: bool = False,
    base_url: Optional[str] = None
) -> dict:
    """
    Head tags for one page

    Relative image paths are made absolute with the site URL.
    """
    base = _base_url(base_url)
    canonical_url = f"{base}{canonical_path}"
    image = image or DEFAULT_IMAGE
    image_url = image if image.startswith('http') else f"{base}{image}"

    meta = {
        "title": title,
        "description": description,
        "canonical": canonical_url,
        "og": {
            "title": title,
            "description": description,
            "type": page_type,
            "url": canonical_url,
            "image": image_url,
        },
        "twitter": {
            "card": "summary_large_image",
            "title": title,
            "description": description,
            "image": image_url,
        },
    }
    if keywords:
        meta["keywords"] = keywords
    if noindex:
        meta["robots"] = "noindex, nofollow"
    return meta


def product_meta_tags(product: Product, base_url: Optional[str] = None) -> dict:
    description = (product.description or product.name)[:META_DESCRIPTION_LENGTH]
    keywords = ', '.join(filter(None, [product.name, product.category, 'subscription', 'Toolsy Store']))
    return build_meta_tags(
        title=f"{product.name} | Toolsy Store",
        description=description,
        canonical_path=f"/product/{product.slug}",
        image=product.main_image_url,
        page_type='product',
        keywords=keywords,
        base_url=base_url,
    )
