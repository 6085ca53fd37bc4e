"""
Outreach data model: organizations, campaigns, workflow state, drafts,
approvals, idempotency keys, and the operation results the workflow returns.
"""
import enum
import uuid
from datetime import datetime, timezone
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, StrictStr, field_validator

from backend.workflow.errors import ERRORS_BY_KIND, ApprovalError, ApprovalFailure, ErrorKind


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


# ──────────────────────────────────────────────
# Enums
# ──────────────────────────────────────────────

class PartnerStatus(str, enum.Enum):
    POTENTIAL = "potential"
    ENGAGED = "engaged"
    PARTNER = "partner"
    INACTIVE = "inactive"


class CampaignStage(str, enum.Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PAUSED = "paused"


class WorkflowStage(str, enum.Enum):
    INITIAL_RESEARCH = "initial_research"
    DRAFT_GENERATION = "draft_generation"
    USER_REVIEW = "user_review"
    APPROVAL_PENDING = "approval_pending"
    SENDING = "sending"
    FOLLOW_UP = "follow_up"
    COMPLETED = "completed"
    FAILED = "failed"


class EmailStatus(str, enum.Enum):
    DRAFT = "draft"
    APPROVED = "approved"
    SENT = "sent"
    FAILED = "failed"


class ResourceType(str, enum.Enum):
    EMAIL = "email"
    CAMPAIGN = "campaign"
    OUTREACH_BATCH = "outreach_batch"


class OperationType(str, enum.Enum):
    SEND_EMAIL = "send_email"
    CREATE_CRM_RECORD = "create_crm_record"
    SCHEDULE_FOLLOWUP = "schedule_followup"


class FieldErrorType(str, enum.Enum):
    MISSING_REQUIRED = "missing_required"
    TYPE_MISMATCH = "type_mismatch"
    FORMAT_INVALID = "format_invalid"
    CONSTRAINT_VIOLATION = "constraint_violation"


# ──────────────────────────────────────────────
# Entities
# ──────────────────────────────────────────────

class OutreachModel(BaseModel):
    """Base for persisted entities; naive datetimes are read as UTC."""

    @field_validator("*", mode="after")
    @classmethod
    def _assume_utc(cls, value: Any) -> Any:
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    class Config:
        from_attributes = True


class OrganizationProfile(OutreachModel):
    id: str
    name: str
    email: str
    domain: str = ""
    geography: str = ""
    focus_areas: list[str] = Field(default_factory=list)
    fit_rationale: str = ""
    partner_status: PartnerStatus = PartnerStatus.POTENTIAL
    # Advisory only; never read by any workflow decision
    risk_score: Optional[float] = Field(default=None, ge=0, le=100)
    controversy_summary: Optional[str] = None
    crm_contact_id: Optional[str] = None
    selected_for_outreach: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class OutreachCampaign(OutreachModel):
    id: str = Field(default_factory=lambda: new_id("campaign"))
    name: str
    description: str = ""
    stage: CampaignStage = CampaignStage.DRAFT
    target_organization_ids: list[str] = Field(default_factory=list)
    created_by: str = ""
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class WorkflowState(OutreachModel):
    id: str = Field(default_factory=lambda: new_id("workflow"))
    campaign_id: str
    organization_id: str
    stage: WorkflowStage = WorkflowStage.INITIAL_RESEARCH
    data: dict[str, Any] = Field(default_factory=dict)
    created_by: str = ""
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class DraftEmail(OutreachModel):
    id: str = Field(default_factory=lambda: new_id("email"))
    campaign_id: str
    organization_id: str
    workflow_id: Optional[str] = None
    status: EmailStatus = EmailStatus.DRAFT
    subject: str
    body: str
    recipient_email: str
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    sent_at: Optional[datetime] = None
    sent_by: Optional[str] = None
    message_id: Optional[str] = None
    failure_reason: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class UserApproval(OutreachModel):
    id: str = Field(default_factory=lambda: new_id("approval"))
    resource_type: ResourceType
    resource_id: str
    approved_by: str
    approval_text: str = ""
    approved_at: datetime = Field(default_factory=utcnow)
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True


class IdempotencyKey(OutreachModel):
    key: str
    operation_type: OperationType
    resource_id: str
    created_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    result: Optional[dict[str, Any]] = None

    @property
    def completed(self) -> bool:
        return self.completed_at is not None


class RiskAssessment(OutreachModel):
    organization_id: str
    risk_score: Optional[float] = None
    controversy_summary: str = ""
    sources: list[str] = Field(default_factory=list)
    issue_clusters: list[str] = Field(default_factory=list)
    advisory_only: Literal[True] = True
    last_assessed_at: datetime = Field(default_factory=utcnow)


class CrmContact(OutreachModel):
    id: str = ""
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None
    properties: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AIGeneratedEmail(BaseModel):
    """Contract for generator output. Nothing is coerced."""
    subject: StrictStr
    body: StrictStr
    tone: Literal["professional", "friendly", "formal", "casual"]
    target_org_name: StrictStr
    personalization_notes: list[StrictStr]
    confidence: float = Field(ge=0, le=1)
    validation_errors: list[StrictStr]

    class Config:
        strict = True


# ──────────────────────────────────────────────
# Operation results
# ──────────────────────────────────────────────

class FieldError(BaseModel):
    field: str
    message: str
    type: FieldErrorType


class OperationResult(BaseModel):
    success: bool
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    errors: list[FieldError] = Field(default_factory=list)
    approval_reason: Optional[ApprovalFailure] = None

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, **extra):
        return cls(success=False, error=message, error_kind=kind, **extra)

    def raise_for_error(self):
        """Raise the matching OutreachError if this result is a failure."""
        if self.success:
            return
        kind = self.error_kind or ErrorKind.COLLABORATOR
        if kind == ErrorKind.APPROVAL:
            raise ApprovalError(self.error or "Approval rejected", reason=self.approval_reason)
        raise ERRORS_BY_KIND[kind](self.error or kind.value, errors=list(self.errors))


class InitiateOutreachResult(OperationResult):
    workflow_id: Optional[str] = None
    workflow_state: Optional[WorkflowState] = None


class GenerateDraftResult(OperationResult):
    draft_email: Optional[DraftEmail] = None
    generated_email: Optional[AIGeneratedEmail] = None


class RecordApprovalResult(OperationResult):
    approval_id: Optional[str] = None


class TransitionResult(OperationResult):
    workflow_state: Optional[WorkflowState] = None


class SendEmailResult(OperationResult):
    email_id: Optional[str] = None
    message_id: Optional[str] = None
    sent_at: Optional[datetime] = None
    message: Optional[str] = None
    already_sent: bool = False
    scheduled_follow_up_id: Optional[str] = None
