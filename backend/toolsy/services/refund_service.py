"""
Refund Service
Public refund form: validate, store, upload proofs, notify support

Author: TM3
Date: 2026-03-07
"""
import time
import secrets
import string
import logging
from typing import Dict, List, Optional, Tuple

from toolsy.core.validation import is_valid_email
from toolsy.domain.subscription import REFUND_STATUSES
from toolsy.domain.refund import RefundTicket, ProofFile, MAX_PROOF_FILES, MAX_PROOF_FILE_SIZE
from toolsy.repositories.refund_repository import RefundRepository
from toolsy.services.notification_service import NotificationService
from toolsy.services.storage_service import StorageService, REFUND_PROOFS_BUCKET

logger = logging.getLogger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase
TICKET_RANDOM_LENGTH = 9
ALLOWED_MIME_PREFIXES = ('image/', 'video/')

# (filename, content, content_type)
ProofUpload = Tuple[str, bytes, str]


def generate_ticket_id() -> str:
    """REF-<epoch ms>-<9 lowercase base36 chars>"""
    random_part = ''.join(secrets.choice(BASE36_ALPHABET) for _ in range(TICKET_RANDOM_LENGTH))
    return f"REF-{int(time.time() * 1000)}-{random_part}"


def validate_ticket_fields(name: str, email: str, order_id: str, reason: str, description: str) -> List[str]:
    fields = {
        'name': name,
        'email': email,
        'order_id': order_id,
        'reason': reason,
        'description': description,
    }
    missing = [field for field, value in fields.items() if not (value or '').strip()]
    if missing:
        return [f"Missing required fields: {', '.join(missing)}"]
    if not is_valid_email(email.strip()):
        return ["Please enter a valid email address"]
    return []


def validate_proof_files(files: List[ProofUpload]) -> List[str]:
    errors = []
    if len(files) > MAX_PROOF_FILES:
        errors.append(f"At most {MAX_PROOF_FILES} proof files are allowed")

    for filename, content, content_type in files:
        if not (content_type or '').startswith(ALLOWED_MIME_PREFIXES):
            errors.append(f"{filename}: only image and video files are allowed")
        if len(content) > MAX_PROOF_FILE_SIZE:
            errors.append(f"{filename}: file is larger than {MAX_PROOF_FILE_SIZE // (1024 * 1024)}MB")
    return errors


class RefundService:

    def __init__(
        self,
        repository: Optional[RefundRepository] = None,
        storage: Optional[StorageService] = None,
        notifications: Optional[NotificationService] = None
    ):
        self.repository = repository or RefundRepository()
        self.storage = storage or StorageService()
        self.notifications = notifications or NotificationService()

    def _upload_proofs(self, ticket_id: str, files: List[ProofUpload]) -> List[str]:
        """Upload every file; failures are logged and skipped"""
        uploaded = []
        for filename, content, content_type in files:
            path = f"{ticket_id}/{filename}"
            try:
                self.storage.upload(REFUND_PROOFS_BUCKET, path, content, content_type)
                uploaded.append(path)
            except Exception as e:
                logger.error(f"Error uploading proof {path}: {e}")
        return uploaded

    async def submit(
        self,
        name: str,
        email: str,
        order_id: str,
        reason: str,
        description: str,
        files: Optional[List[ProofUpload]] = None
    ) -> Dict:
        """
        Open a refund ticket

        Returns:
            {"ticket": RefundTicket, "uploaded_files": [...], "notifications": {...}}

        Raises:
            ValueError: missing fields or unacceptable files
        """
        files = files or []
        errors = validate_ticket_fields(name, email, order_id, reason, description) + validate_proof_files(files)
        if errors:
            raise ValueError("; ".join(errors))

        ticket = RefundTicket(
            ticket_id=generate_ticket_id(),
            name=name.strip(),
            email=email.strip(),
            order_id=order_id.strip(),
            reason=reason.strip(),
            description=description.strip(),
            proof_files=[
                ProofFile(filename=filename, size=len(content), mimetype=content_type)
                for filename, content, content_type in files
            ],
        )
        ticket = self.repository.create_ticket(ticket)

        uploaded = self._upload_proofs(ticket.ticket_id, files)
        logger.info(
            f"Refund request received: {ticket.ticket_id} order={ticket.order_id} "
            f"reason={ticket.reason} files={len(files)} uploaded={len(uploaded)}"
        )

        notifications = await self.notifications.notify_refund_request(ticket.notification_payload())

        return {"ticket": ticket, "uploaded_files": uploaded, "notifications": notifications}

    def update_status(self, ticket_id: str, status: str, admin_notes: Optional[str] = None) -> Optional[RefundTicket]:
        if status not in REFUND_STATUSES:
            raise ValueError(f"Invalid status '{status}'. Valid: {', '.join(REFUND_STATUSES)}")
        return self.repository.update_ticket_status(ticket_id, status, admin_notes)


def get_refund_service() -> RefundService:
    return RefundService()
