"""
Input validation and sanitization helpers

Used by the catalog admin endpoints, checkout and the public refund form.

Author: TM3
Date: 2026-03-02
"""
import re
from typing import List, Optional
from urllib.parse import urlparse


EMAIL_REGEX = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')

IMAGE_PATH_REGEX = re.compile(r'\.(jpg|jpeg|png|gif|webp|svg)$', re.IGNORECASE)
VIDEO_PATH_REGEX = re.compile(r'\.(mp4|webm|ogg|mov|avi|mkv)$', re.IGNORECASE)

_SANITIZE_PATTERNS = [
    # script tags and their content
    re.compile(r'<script\b[^<]*(?:(?!</script>)<[^<]*)*</script>', re.IGNORECASE),
    re.compile(r'javascript:', re.IGNORECASE),
    # inline event handlers (onclick="...")
    re.compile(r'on\w+\s*=\s*["\'][^"\']*["\']', re.IGNORECASE),
    # data: URLs other than images
    re.compile(r'data:(?!image/(?:png|jpg|jpeg|gif|webp))', re.IGNORECASE),
    re.compile(r'vbscript:', re.IGNORECASE),
    re.compile(r'<iframe\b[^<]*(?:(?!</iframe>)<[^<]*)*</iframe>', re.IGNORECASE),
    re.compile(r'<(object|embed)\b[^<]*(?:(?!</(?:object|embed)>)<[^<]*)*</(?:object|embed)>', re.IGNORECASE),
    re.compile(r'<form\b[^<]*(?:(?!</form>)<[^<]*)*</form>', re.IGNORECASE),
    re.compile(r'<input\b[^>]*>', re.IGNORECASE),
]


def sanitize_html(value: Optional[str]) -> str:
    """Strip active content (scripts, frames, forms, handlers) from free text"""
    if not value or not isinstance(value, str):
        return ''

    for pattern in _SANITIZE_PATTERNS:
        value = pattern.sub('', value)

    return value.strip()


def is_valid_email(email: str) -> bool:
    return bool(email) and bool(EMAIL_REGEX.match(email))


def _http_url(url: str):
    try:
        parsed = urlparse(url)
    except ValueError:
        return None
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        return None
    return parsed


def is_valid_image_url(url: str) -> bool:
    parsed = _http_url(url)
    return parsed is not None and bool(IMAGE_PATH_REGEX.search(parsed.path))


def is_valid_video_url(url: str) -> bool:
    """YouTube, Vimeo or a direct link to a video file"""
    parsed = _http_url(url)
    if parsed is None:
        return False

    hostname = parsed.hostname or ''
    if 'youtube.com' in hostname or 'youtu.be' in hostname:
        return True
    if 'vimeo.com' in hostname:
        return True

    return bool(VIDEO_PATH_REGEX.search(parsed.path))


def slugify(name: str) -> str:
    """
    Build a URL slug from a product name

    Example: "ChatGPT Plus (Shared)" -> "chatgpt-plus-shared"
    """
    slug = re.sub(r'[^a-z0-9]+', '-', (name or '').lower())
    return slug.strip('-')


def validate_product_data(data: dict) -> List[str]:
    """
    Validate product fields coming from the admin form.

    Returns every error found; an empty list means the data is valid.
    """
    errors = []

    name = (data.get('name') or '').strip()
    if not name:
        errors.append('Product name is required')
    elif len(name) > 200:
        errors.append('Product name must be less than 200 characters')

    description = (data.get('description') or '').strip()
    if not description:
        errors.append('Product description is required')
    elif len(description) > 500:
        errors.append('Product description must be less than 500 characters')

    if not (data.get('original_price') or '').strip():
        errors.append('Original price is required')

    if not (data.get('category') or '').strip():
        errors.append('Category is required')

    detailed = data.get('detailed_description')
    if detailed and len(detailed) > 2000:
        errors.append('Detailed description must be less than 2000 characters')

    rating = data.get('rating')
    if rating is not None:
        try:
            rating_value = float(rating)
        except (TypeError, ValueError):
            rating_value = None
        if rating_value is None or rating_value < 0 or rating_value > 5:
            errors.append('Rating must be a number between 0 and 5')

    if data.get('main_image_url') and not is_valid_image_url(data['main_image_url']):
        errors.append('Main image URL is not valid')

    if data.get('video_url') and not is_valid_video_url(data['video_url']):
        errors.append('Video URL is not valid')

    if data.get('video_thumbnail_url') and not is_valid_image_url(data['video_thumbnail_url']):
        errors.append('Video thumbnail URL is not valid')

    features = data.get('features') or []
    if any(f and f.strip() and len(f) > 200 for f in features):
        errors.append('Each feature must be less than 200 characters')

    return errors


def sanitize_product_data(data: dict) -> dict:
    """Return a copy of product data with free text sanitized and URLs trimmed"""
    sanitized = dict(data)

    for field in ('name', 'description', 'category'):
        if field in data:
            sanitized[field] = sanitize_html(data.get(field) or '')

    if 'detailed_description' in data:
        detailed = data.get('detailed_description')
        sanitized['detailed_description'] = sanitize_html(detailed) if detailed else None

    if 'features' in data:
        features = data.get('features') or []
        sanitized['features'] = [
            cleaned for cleaned in (sanitize_html(f) for f in features) if cleaned
        ]

    for field in ('main_image_url', 'video_url', 'video_thumbnail_url'):
        if field in data:
            url = data.get(field)
            sanitized[field] = url.strip() if url else None

    return sanitized
