"""
Refund Ticket Domain Models

Public refund form: anyone can open a ticket with proof files attached,
no auth code needed.

Author: TM3
Date: 2026-03-03
"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime


REFUND_REASONS = (
    'not-working',
    'wrong-product',
    'duplicate-payment',
    'account-issue',
    'changed-mind',
    'other',
)

MAX_PROOF_FILES = 5
MAX_PROOF_FILE_SIZE = 10 * 1024 * 1024  # 10MB


class ProofFile(BaseModel):
    """Metadata of an uploaded proof file"""
    filename: str
    size: int
    mimetype: str


class RefundTicket(BaseModel):
    id: Optional[str] = None
    ticket_id: str = Field(..., description="REF-<epoch ms>-<9 base36 chars>")
    name: str
    email: str
    order_id: str
    reason: str
    description: str
    proof_files: List[ProofFile] = Field(default_factory=list)
    status: str = 'pending'
    admin_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode='json')

    def notification_payload(self) -> dict:
        """Fields forwarded to the chat webhooks"""
        return {
            'ticketId': self.ticket_id,
            'name': self.name,
            'email': self.email,
            'orderId': self.order_id,
            'reason': self.reason,
            'description': self.description,
            'proofCount': len(self.proof_files),
        }
