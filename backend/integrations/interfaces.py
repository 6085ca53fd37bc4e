"""
Abstract interfaces for the outreach workflow's external collaborators.

The workflow and search wrapper only see these contracts; in-memory and
real backends live next to this module.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Generic, Optional, TypeVar

from backend.workflow.schemas import (
    CrmContact,
    DraftEmail,
    IdempotencyKey,
    OrganizationProfile,
    OutreachCampaign,
    UserApproval,
    WorkflowStage,
    WorkflowState,
)

T = TypeVar("T")


@dataclass
class StoreResult(Generic[T]):
    """Envelope returned by every store write."""
    success: bool
    error: Optional[str] = None
    entity: Optional[T] = None


@dataclass
class MailSendResult:
    success: bool
    message_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    error: Optional[str] = None


@dataclass
class FollowUpScheduleResult:
    success: bool
    scheduled_email_id: Optional[str] = None
    error: Optional[str] = None


@dataclass
class GenerationResult:
    """Raw generator output. ``data`` is untrusted until validated."""
    success: bool
    data: Optional[dict[str, Any]] = None
    error: Optional[str] = None


@dataclass
class ContactLookupOrCreate:
    contact: CrmContact
    is_new: bool


# ──────────────────────────────────────────────
# Persistence
# ──────────────────────────────────────────────

class OutreachStore(ABC):
    """Persistent state for workflows, drafts, approvals and idempotency keys.

    Reads return the entity or None and never raise for a missing record.
    """

    @abstractmethod
    async def save_workflow_state(self, state: WorkflowState) -> StoreResult[WorkflowState]:
        ...

    @abstractmethod
    async def get_workflow_state(self, workflow_id: str) -> Optional[WorkflowState]:
        ...

    @abstractmethod
    async def get_workflow_states_by_campaign(self, campaign_id: str) -> list[WorkflowState]:
        ...

    @abstractmethod
    async def update_workflow_stage(
        self, workflow_id: str, stage: WorkflowStage, data: Optional[dict[str, Any]] = None
    ) -> StoreResult[WorkflowState]:
        ...

    @abstractmethod
    async def save_draft_email(self, email: DraftEmail) -> StoreResult[DraftEmail]:
        ...

    @abstractmethod
    async def get_draft_email(self, email_id: str) -> Optional[DraftEmail]:
        ...

    @abstractmethod
    async def list_draft_emails_by_campaign(self, campaign_id: str) -> list[DraftEmail]:
        ...

    @abstractmethod
    async def save_user_approval(self, approval: UserApproval) -> StoreResult[UserApproval]:
        ...

    @abstractmethod
    async def get_user_approval(self, approval_id: str) -> Optional[UserApproval]:
        ...

    @abstractmethod
    async def has_approval(self, resource_type: str, resource_id: str) -> bool:
        ...

    @abstractmethod
    async def save_org_profile(self, org: OrganizationProfile) -> StoreResult[OrganizationProfile]:
        ...

    @abstractmethod
    async def get_org_profile(self, org_id: str) -> Optional[OrganizationProfile]:
        ...

    @abstractmethod
    async def record_idempotency_key(self, key: IdempotencyKey) -> StoreResult[IdempotencyKey]:
        ...

    @abstractmethod
    async def get_idempotency_key(self, key: str) -> Optional[IdempotencyKey]:
        ...


# ──────────────────────────────────────────────
# Outbound collaborators
# ──────────────────────────────────────────────

class MailTransport(ABC):

    @abstractmethod
    async def send_approved_email(self, draft: DraftEmail, approval: UserApproval) -> MailSendResult:
        ...

    @abstractmethod
    async def schedule_follow_up(
        self,
        draft: DraftEmail,
        approval: UserApproval,
        delay: timedelta,
        idempotency_key: str,
    ) -> FollowUpScheduleResult:
        """Record a request to send a follow-up later. Nothing is dispatched here."""
        ...


class CrmAdapter(ABC):
    """Read-mostly CRM access. Existing records are never modified."""

    @abstractmethod
    async def get_contact_by_email(self, email: str) -> Optional[CrmContact]:
        ...

    @abstractmethod
    async def get_contact_by_id(self, contact_id: str) -> Optional[CrmContact]:
        ...

    @abstractmethod
    async def list_contacts(self, limit: int = 100, offset: int = 0) -> list[CrmContact]:
        ...

    @abstractmethod
    async def create_contact_if_not_exists(self, contact: CrmContact) -> ContactLookupOrCreate:
        ...


class EmailGenerationService(ABC):

    @abstractmethod
    async def generate_email(
        self, org: OrganizationProfile, campaign: OutreachCampaign
    ) -> GenerationResult:
        ...


class OrganizationSearchProvider(ABC):
    """Best-effort live search. Callers must fall back to the local registry."""

    @abstractmethod
    async def search(self, query: str) -> list[OrganizationProfile]:
        ...
