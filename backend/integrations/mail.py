"""
Outbox mail transport.

Approved emails are "sent" by recording them in memory and, when an outbox
directory is configured, writing one JSON file per message. A relay that
picks up the outbox is the deployment's concern.
"""
import json
import logging
import uuid
from datetime import timedelta
from pathlib import Path
from typing import Optional

from backend.integrations.interfaces import FollowUpScheduleResult, MailSendResult, MailTransport
from backend.workflow.schemas import DraftEmail, UserApproval, utcnow

logger = logging.getLogger(__name__)


class OutboxMailTransport(MailTransport):

    def __init__(self, outbox_dir: Optional[str] = None):
        self.outbox_dir = Path(outbox_dir) if outbox_dir else None
        self.sent: list[dict] = []
        self.scheduled: list[dict] = []

    def _write(self, kind: str, record: dict) -> None:
        if self.outbox_dir is None:
            return
        target = self.outbox_dir / kind
        target.mkdir(parents=True, exist_ok=True)
        path = target / f"{record['id']}.json"
        path.write_text(json.dumps(record, indent=2, default=str), encoding="utf-8")

    async def send_approved_email(self, draft: DraftEmail, approval: UserApproval) -> MailSendResult:
        message_id = f"<{uuid.uuid4().hex}@outreach.local>"
        sent_at = utcnow()
        record = {
            "id": uuid.uuid4().hex,
            "message_id": message_id,
            "email_id": draft.id,
            "approval_id": approval.id,
            "to": draft.recipient_email,
            "subject": draft.subject,
            "body": draft.body,
            "sent_at": sent_at.isoformat(),
        }
        try:
            self._write("sent", record)
        except OSError as e:
            logger.error(f"Failed to write outbox message for email {draft.id}: {e}")
            return MailSendResult(success=False, error=f"Outbox write failed: {e}")

        self.sent.append(record)
        logger.info(f"Queued email {draft.id} to {draft.recipient_email} as {message_id}")
        return MailSendResult(success=True, message_id=message_id, sent_at=sent_at)

    async def schedule_follow_up(
        self,
        draft: DraftEmail,
        approval: UserApproval,
        delay: timedelta,
        idempotency_key: str,
    ) -> FollowUpScheduleResult:
        for existing in self.scheduled:
            if existing["idempotency_key"] == idempotency_key:
                return FollowUpScheduleResult(success=True, scheduled_email_id=existing["id"])

        record = {
            "id": f"followup-{uuid.uuid4().hex[:12]}",
            "email_id": draft.id,
            "approval_id": approval.id,
            "to": draft.recipient_email,
            "idempotency_key": idempotency_key,
            "send_after": (utcnow() + delay).isoformat(),
        }
        try:
            self._write("scheduled", record)
        except OSError as e:
            logger.error(f"Failed to record follow-up for email {draft.id}: {e}")
            return FollowUpScheduleResult(success=False, error=f"Outbox write failed: {e}")

        self.scheduled.append(record)
        logger.info(f"Scheduled follow-up {record['id']} for email {draft.id} at {record['send_after']}")
        return FollowUpScheduleResult(success=True, scheduled_email_id=record["id"])
