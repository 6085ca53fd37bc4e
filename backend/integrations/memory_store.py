"""
In-process OutreachStore for local runs and tests.

Entities are deep-copied on the way in and out, so callers never share
mutable state with the store.
"""
import logging
from typing import Any, Optional

from backend.integrations.interfaces import OutreachStore, StoreResult
from backend.workflow.schemas import (
    DraftEmail,
    IdempotencyKey,
    OrganizationProfile,
    UserApproval,
    WorkflowStage,
    WorkflowState,
    utcnow,
)

logger = logging.getLogger(__name__)


class InMemoryOutreachStore(OutreachStore):

    def __init__(self):
        self.workflow_states: dict[str, WorkflowState] = {}
        self.draft_emails: dict[str, DraftEmail] = {}
        self.approvals: dict[str, UserApproval] = {}
        self.org_profiles: dict[str, OrganizationProfile] = {}
        self.idempotency_keys: dict[str, IdempotencyKey] = {}

    @staticmethod
    def _copy(entity):
        return entity.model_copy(deep=True) if entity is not None else None

    # ── Workflow state ───────────────────────────

    async def save_workflow_state(self, state: WorkflowState) -> StoreResult[WorkflowState]:
        self.workflow_states[state.id] = self._copy(state)
        return StoreResult(success=True, entity=self._copy(state))

    async def get_workflow_state(self, workflow_id: str) -> Optional[WorkflowState]:
        return self._copy(self.workflow_states.get(workflow_id))

    async def get_workflow_states_by_campaign(self, campaign_id: str) -> list[WorkflowState]:
        return [self._copy(s) for s in self.workflow_states.values() if s.campaign_id == campaign_id]

    async def update_workflow_stage(
        self, workflow_id: str, stage: WorkflowStage, data: Optional[dict[str, Any]] = None
    ) -> StoreResult[WorkflowState]:
        state = self.workflow_states.get(workflow_id)
        if state is None:
            return StoreResult(success=False, error=f"Workflow {workflow_id} not found")

        merged = {**state.data, **(data or {})}
        updated = state.model_copy(update={"stage": stage, "data": merged, "updated_at": utcnow()}, deep=True)
        self.workflow_states[workflow_id] = updated
        return StoreResult(success=True, entity=self._copy(updated))

    # ── Draft emails ─────────────────────────────

    async def save_draft_email(self, email: DraftEmail) -> StoreResult[DraftEmail]:
        self.draft_emails[email.id] = self._copy(email)
        return StoreResult(success=True, entity=self._copy(email))

    async def get_draft_email(self, email_id: str) -> Optional[DraftEmail]:
        return self._copy(self.draft_emails.get(email_id))

    async def list_draft_emails_by_campaign(self, campaign_id: str) -> list[DraftEmail]:
        return [self._copy(e) for e in self.draft_emails.values() if e.campaign_id == campaign_id]

    # ── Approvals ────────────────────────────────

    async def save_user_approval(self, approval: UserApproval) -> StoreResult[UserApproval]:
        if approval.id in self.approvals:
            return StoreResult(success=False, error=f"Approval {approval.id} already exists")
        self.approvals[approval.id] = approval
        return StoreResult(success=True, entity=approval)

    async def get_user_approval(self, approval_id: str) -> Optional[UserApproval]:
        return self.approvals.get(approval_id)

    async def has_approval(self, resource_type: str, resource_id: str) -> bool:
        return any(
            a.resource_type.value == resource_type and a.resource_id == resource_id
            for a in self.approvals.values()
        )

    # ── Organizations ────────────────────────────

    async def save_org_profile(self, org: OrganizationProfile) -> StoreResult[OrganizationProfile]:
        self.org_profiles[org.id] = self._copy(org)
        return StoreResult(success=True, entity=self._copy(org))

    async def get_org_profile(self, org_id: str) -> Optional[OrganizationProfile]:
        return self._copy(self.org_profiles.get(org_id))

    # ── Idempotency ──────────────────────────────

    async def record_idempotency_key(self, key: IdempotencyKey) -> StoreResult[IdempotencyKey]:
        self.idempotency_keys[key.key] = self._copy(key)
        return StoreResult(success=True, entity=self._copy(key))

    async def get_idempotency_key(self, key: str) -> Optional[IdempotencyKey]:
        return self._copy(self.idempotency_keys.get(key))
