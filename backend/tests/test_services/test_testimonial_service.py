"""
Unit tests for TestimonialService and StorageService

Author: TM3
Date: 2026-03-10
"""
import re
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from toolsy.domain import testimonial as testimonial_domain
from toolsy.services.storage_service import TESTIMONIAL_PHOTOS_BUCKET, StorageService, unique_filename
from toolsy.services import testimonial_service


def make_testimonial(**overrides):
    data = {"id": "t1", "name": "Ada Obi", "content": "Fast delivery"}
    data.update(overrides)
    return testimonial_domain.Testimonial(**data)


class TestTestimonialService:

    def setup_method(self):
        self.repository = MagicMock()
        self.service = testimonial_service.TestimonialService(repository=self.repository, cache_ttl=300)

    def test_each_product_slug_is_cached_separately(self):
        self.repository.find_all.return_value = ([make_testimonial()], 1)

        self.service.list_testimonials()
        self.service.list_testimonials()
        self.service.list_testimonials(product_slug="netflix-premium")

        assert self.repository.find_all.call_count == 2

    @patch('toolsy.services.testimonial_service.record_admin_action')
    def test_create_defaults_date_and_sanitizes(self, mock_audit):
        self.repository.create.return_value = make_testimonial()

        self.service.create_testimonial({
            "name": "Ada Obi",
            "content": "<script>alert(1)</script>Fast delivery",
        })

        written = self.repository.create.call_args[0][0]
        assert written["date"] == date.today()
        assert written["content"] == "Fast delivery"
        mock_audit.assert_called_once()

    def test_create_rejects_unsupported_video_host(self):
        with pytest.raises(ValueError, match="Video URL"):
            self.service.create_testimonial({
                "name": "Ada Obi", "content": "Great", "type": "video",
                "video_url": "https://example.com/watch",
            })

        self.repository.create.assert_not_called()

    @patch('toolsy.services.testimonial_service.record_admin_action')
    def test_delete_missing_keeps_cache(self, mock_audit):
        self.repository.find_all.return_value = ([make_testimonial()], 1)
        self.repository.delete.return_value = False
        self.service.list_testimonials()

        assert self.service.delete_testimonial("missing") is False

        self.service.list_testimonials()
        self.repository.find_all.assert_called_once()
        mock_audit.assert_not_called()


class TestStorageService:

    def test_unique_filename_keeps_extension(self):
        name = unique_filename("Receipt.PNG")

        assert re.fullmatch(r"\d{13}-[a-z0-9]{11}\.png", name)

    def test_upload_returns_public_url(self):
        client = MagicMock()
        client.storage.from_.return_value.get_public_url.return_value = "https://cdn/x.png"
        storage = StorageService(client=client)

        uploaded = storage.upload_testimonial_photo("x.png", b"png-bytes", "image/png")

        assert uploaded["url"] == "https://cdn/x.png"
        assert uploaded["path"].startswith("customers/")
        client.storage.from_.assert_called_with(TESTIMONIAL_PHOTOS_BUCKET)
        options = client.storage.from_.return_value.upload.call_args.kwargs["file_options"]
        assert options["content-type"] == "image/png"

    def test_non_image_photo_is_rejected(self):
        client = MagicMock()

        with pytest.raises(ValueError):
            StorageService(client=client).upload_testimonial_photo("x.pdf", b"%PDF", "application/pdf")

        client.storage.from_.assert_not_called()
