import json
from datetime import timedelta

import pytest

from backend.integrations.mail import OutboxMailTransport
from backend.workflow.schemas import DraftEmail, ResourceType, UserApproval


@pytest.fixture
def draft() -> DraftEmail:
    return DraftEmail(
        campaign_id="campaign-reefs",
        organization_id="ngo-008",
        subject="Partnership on reef restoration",
        body="Dear team, ...",
        recipient_email="info@coralreefalliance.org",
    )


@pytest.fixture
def approval(draft) -> UserApproval:
    return UserApproval(resource_type=ResourceType.EMAIL, resource_id=draft.id, approved_by="reviewer")


class TestOutboxMailTransport:

    @pytest.mark.asyncio
    async def test_send_writes_outbox_file(self, tmp_path, draft, approval):
        transport = OutboxMailTransport(str(tmp_path))

        result = await transport.send_approved_email(draft, approval)

        assert result.success is True
        assert result.message_id.endswith("@outreach.local>")
        files = list((tmp_path / "sent").glob("*.json"))
        assert len(files) == 1
        record = json.loads(files[0].read_text())
        assert record["to"] == "info@coralreefalliance.org"
        assert record["approval_id"] == approval.id

    @pytest.mark.asyncio
    async def test_send_without_outbox_dir_keeps_memory_record(self, draft, approval):
        transport = OutboxMailTransport()

        await transport.send_approved_email(draft, approval)

        assert transport.sent[0]["email_id"] == draft.id

    @pytest.mark.asyncio
    async def test_unwritable_outbox_fails_cleanly(self, tmp_path, draft, approval):
        """Test that a file where the outbox directory should be yields a failed result."""
        blocker = tmp_path / "outbox"
        blocker.write_text("not a directory")
        transport = OutboxMailTransport(str(blocker))

        result = await transport.send_approved_email(draft, approval)

        assert result.success is False
        assert result.error.startswith("Outbox write failed")
        assert transport.sent == []

    @pytest.mark.asyncio
    async def test_follow_up_is_deduplicated_by_key(self, draft, approval):
        transport = OutboxMailTransport()

        first = await transport.schedule_follow_up(draft, approval, timedelta(days=3), "email-followup-1")
        second = await transport.schedule_follow_up(draft, approval, timedelta(days=3), "email-followup-1")

        assert first.scheduled_email_id == second.scheduled_email_id
        assert first.scheduled_email_id.startswith("followup-")
        assert len(transport.scheduled) == 1
