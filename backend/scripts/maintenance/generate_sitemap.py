#!/usr/bin/env python3
"""
Generate sitemap.xml

Writes the storefront sitemap (static pages plus one URL per product) to a
file, typically the front end's public/ directory before a deploy.

Usage:
    python3 generate_sitemap.py [--output public/sitemap.xml] [--base-url https://toolsy.store]

Author: TM3
Date: 2026-03-09
"""
import os
import sys
import argparse
import logging
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from dotenv import load_dotenv
load_dotenv(os.path.join(os.path.dirname(__file__), '../../.env'))

from toolsy.core.config import settings
from toolsy.repositories.product_repository import ProductRepository
from toolsy.services.seo_service import generate_sitemap

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Generate the storefront sitemap.xml')
    parser.add_argument('--output', type=str, default='public/sitemap.xml', help='Output file path')
    parser.add_argument('--base-url', type=str, default=None, help=f'Site URL (default: {settings.SITE_URL})')
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        products, total = ProductRepository().find_all(limit=10000)
        logger.info(f"Fetched {total} products")
    except Exception as e:
        logger.error(f"Could not fetch products: {e}")
        return 1

    xml = generate_sitemap(products, base_url=args.base_url)

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(xml, encoding='utf-8')
    logger.info(f"Sitemap written to {output} ({xml.count('<url>')} URLs)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
