"""
Unit tests for RefundService (public refund form)

Author: TM3
Date: 2026-03-10
"""
import asyncio
import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from toolsy.domain.refund import MAX_PROOF_FILE_SIZE, MAX_PROOF_FILES
from toolsy.services.refund_service import (
    RefundService,
    generate_ticket_id,
    validate_proof_files,
    validate_ticket_fields,
)


class TestValidation:

    def test_ticket_id_format(self):
        assert re.fullmatch(r'REF-\d{13}-[0-9a-z]{9}', generate_ticket_id())

    def test_valid_fields(self, sample_refund_form):
        assert validate_ticket_fields(**sample_refund_form) == []

    def test_missing_fields_are_listed(self, sample_refund_form):
        form = dict(sample_refund_form, order_id="", description="  ")

        assert validate_ticket_fields(**form) == ["Missing required fields: order_id, description"]

    def test_invalid_email(self, sample_refund_form):
        form = dict(sample_refund_form, email="ada-at-example")

        assert validate_ticket_fields(**form) == ["Please enter a valid email address"]

    def test_proof_files_must_be_image_or_video(self):
        errors = validate_proof_files([
            ("a.png", b"x", "image/png"),
            ("b.mp4", b"x", "video/mp4"),
            ("c.pdf", b"x", "application/pdf"),
        ])

        assert errors == ["c.pdf: only image and video files are allowed"]

    def test_proof_files_size_limit(self):
        errors = validate_proof_files([("big.png", b"0" * (MAX_PROOF_FILE_SIZE + 1), "image/png")])

        assert errors == ["big.png: file is larger than 10MB"]

    def test_proof_files_count_limit(self):
        files = [(f"{i}.png", b"x", "image/png") for i in range(MAX_PROOF_FILES + 1)]

        assert validate_proof_files(files) == [f"At most {MAX_PROOF_FILES} proof files are allowed"]


class TestSubmit:

    def setup_method(self):
        self.repository = MagicMock()
        self.repository.create_ticket.side_effect = lambda ticket: ticket
        self.storage = MagicMock()
        self.notifications = MagicMock()
        self.notifications.notify_refund_request = AsyncMock(return_value={'discord': 'sent'})
        self.service = RefundService(
            repository=self.repository, storage=self.storage, notifications=self.notifications
        )

    def test_submit_stores_uploads_and_notifies(self, sample_refund_form):
        files = [("proof.png", b"png-bytes", "image/png")]

        result = asyncio.run(self.service.submit(files=files, **sample_refund_form))

        ticket = result["ticket"]
        assert ticket.ticket_id.startswith("REF-")
        assert ticket.proof_files[0].size == len(b"png-bytes")
        assert result["uploaded_files"] == [f"{ticket.ticket_id}/proof.png"]
        assert result["notifications"] == {'discord': 'sent'}
        self.storage.upload.assert_called_once_with(
            'refund-proofs', f"{ticket.ticket_id}/proof.png", b"png-bytes", "image/png"
        )
        payload = self.notifications.notify_refund_request.call_args[0][0]
        assert payload['orderId'] == "ORD-1001"
        assert payload['proofCount'] == 1

    def test_failed_upload_is_skipped(self, sample_refund_form):
        self.storage.upload.side_effect = [RuntimeError("bucket unavailable"), None]
        files = [("a.png", b"a", "image/png"), ("b.png", b"b", "image/png")]

        result = asyncio.run(self.service.submit(files=files, **sample_refund_form))

        assert result["uploaded_files"] == [f"{result['ticket'].ticket_id}/b.png"]

    def test_invalid_form_is_not_stored(self, sample_refund_form):
        form = dict(sample_refund_form, name="")

        with pytest.raises(ValueError, match="Missing required fields: name"):
            asyncio.run(self.service.submit(**form))

        self.repository.create_ticket.assert_not_called()
        self.notifications.notify_refund_request.assert_not_called()

    def test_update_status_validates_status(self):
        with pytest.raises(ValueError):
            self.service.update_status("REF-1-abc", "lost")

        self.repository.update_ticket_status.assert_not_called()
