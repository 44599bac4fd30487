"""
Testimonial Service
Cached public testimonial lists and admin maintenance

Author: TM3
Date: 2026-03-07
"""
import logging
from datetime import date
from typing import List, Optional, Tuple

from toolsy.core.config import settings
from toolsy.core.validation import sanitize_html, is_valid_video_url, is_valid_image_url
from toolsy.domain.testimonial import Testimonial
from toolsy.repositories.testimonial_repository import TestimonialRepository
from toolsy.services.audit_service import AuditContext, record_admin_action
from toolsy.services.cache import TTLCache

logger = logging.getLogger(__name__)

_TEXT_FIELDS = ('name', 'role', 'company', 'content')


def _check_media(data: dict) -> None:
    if data.get('video_url') and not is_valid_video_url(data['video_url']):
        raise ValueError("Video URL must be a YouTube, Vimeo or video file URL")
    if data.get('image_url') and not is_valid_image_url(data['image_url']):
        raise ValueError("Image URL is not valid")


def _clean(data: dict) -> dict:
    clean = dict(data)
    for field in _TEXT_FIELDS:
        if isinstance(clean.get(field), str):
            clean[field] = sanitize_html(clean[field])
    return clean


class TestimonialService:

    def __init__(self, repository: Optional[TestimonialRepository] = None, cache_ttl: Optional[int] = None):
        self.repository = repository or TestimonialRepository()
        self._cache = TTLCache('testimonials', cache_ttl if cache_ttl is not None else settings.CATALOG_CACHE_TTL)

    def list_testimonials(
        self,
        product_slug: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Tuple[List[Testimonial], int]:
        """Newest first; each product_slug (or none) is cached separately"""
        testimonials, total = self._cache.get_or_load(
            product_slug or '*',
            lambda: self.repository.find_all(product_slug=product_slug, limit=1000, offset=0)
        )
        return testimonials[offset:offset + limit], total

    def invalidate_cache(self) -> None:
        self._cache.invalidate()

    def cache_stats(self) -> dict:
        return self._cache.stats()

    def get_testimonial(self, testimonial_id: str) -> Optional[Testimonial]:
        return self.repository.find_by_id(testimonial_id)

    def create_testimonial(self, data: dict, context: Optional[AuditContext] = None) -> Testimonial:
        _check_media(data)
        clean = _clean(data)
        if not clean.get('date'):
            clean['date'] = date.today()

        testimonial = self.repository.create(clean)
        self._cache.invalidate()

        logger.info(f"Testimonial created: {testimonial.id} ({testimonial.name})")
        record_admin_action(context, 'create', 'testimonials', testimonial.id,
                            new_values={k: str(v) for k, v in clean.items()})
        return testimonial

    def update_testimonial(
        self,
        testimonial_id: str,
        updates: dict,
        context: Optional[AuditContext] = None
    ) -> Optional[Testimonial]:
        _check_media(updates)
        clean = _clean(updates)

        testimonial = self.repository.update(testimonial_id, clean)
        if testimonial:
            self._cache.invalidate()
            record_admin_action(context, 'update', 'testimonials', testimonial_id,
                                new_values={k: str(v) for k, v in clean.items()})
        return testimonial

    def delete_testimonial(self, testimonial_id: str, context: Optional[AuditContext] = None) -> bool:
        deleted = self.repository.delete(testimonial_id)
        if deleted:
            self._cache.invalidate()
            logger.info(f"Testimonial deleted: {testimonial_id}")
            record_admin_action(context, 'delete', 'testimonials', testimonial_id)
        return deleted


_testimonial_service: Optional[TestimonialService] = None


def get_testimonial_service() -> TestimonialService:
    global _testimonial_service
    if _testimonial_service is None:
        _testimonial_service = TestimonialService()
    return _testimonial_service
