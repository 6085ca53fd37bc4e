"""
Database models for the outreach store.
"""
from sqlalchemy import (
    Column, String, Float, Text, DateTime, Boolean, JSON, Enum as SAEnum, func
)
from sqlalchemy.orm import DeclarativeBase

from backend.workflow.schemas import (
    EmailStatus,
    OperationType,
    PartnerStatus,
    ResourceType,
    WorkflowStage,
)


class Base(DeclarativeBase):
    pass


def _enum_column_type(enum_cls, name: str) -> SAEnum:
    # Stored as VARCHAR holding the enum value, so no CREATE TYPE is needed
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda e: [member.value for member in e],
    )


workflow_stage_enum = _enum_column_type(WorkflowStage, "workflow_stage")
email_status_enum = _enum_column_type(EmailStatus, "email_status")
resource_type_enum = _enum_column_type(ResourceType, "resource_type")
operation_type_enum = _enum_column_type(OperationType, "operation_type")
partner_status_enum = _enum_column_type(PartnerStatus, "partner_status")


class WorkflowStateRow(Base):
    """Where one (campaign, organization) engagement is in its lifecycle."""
    __tablename__ = "workflow_states"

    id = Column(String(64), primary_key=True)
    campaign_id = Column(String(64), nullable=False, index=True)
    organization_id = Column(String(64), nullable=False)
    stage = Column(workflow_stage_enum, nullable=False)
    data = Column(JSON, default=dict)
    created_by = Column(String(200), default="")
    created_at = Column(DateTime(timezone=True), default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())


class DraftEmailRow(Base):
    __tablename__ = "draft_emails"

    id = Column(String(64), primary_key=True)
    campaign_id = Column(String(64), nullable=False, index=True)
    organization_id = Column(String(64), nullable=False)
    workflow_id = Column(String(64))
    status = Column(email_status_enum, nullable=False)
    subject = Column(String(1000), nullable=False)
    body = Column(Text, nullable=False)
    recipient_email = Column(String(320), nullable=False)
    approved_at = Column(DateTime(timezone=True))
    approved_by = Column(String(200))
    sent_at = Column(DateTime(timezone=True))
    sent_by = Column(String(200))
    message_id = Column(String(200))
    failure_reason = Column(Text)
    created_at = Column(DateTime(timezone=True), default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())


class UserApprovalRow(Base):
    """Immutable record of a human approving a resource."""
    __tablename__ = "user_approvals"

    id = Column(String(64), primary_key=True)
    resource_type = Column(resource_type_enum, nullable=False)
    resource_id = Column(String(64), nullable=False, index=True)
    approved_by = Column(String(200), nullable=False)
    approval_text = Column(Text, default="")
    approved_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True))


class OrganizationProfileRow(Base):
    """Snapshot of a registry organization taken when outreach starts."""
    __tablename__ = "organization_profiles"

    id = Column(String(64), primary_key=True)
    name = Column(String(500), nullable=False)
    email = Column(String(320), nullable=False)
    domain = Column(String(200), default="")
    geography = Column(String(500), default="")
    focus_areas = Column(JSON, default=list)
    fit_rationale = Column(Text, default="")
    partner_status = Column(partner_status_enum, nullable=False)
    risk_score = Column(Float)  # 0 - 100, advisory only
    controversy_summary = Column(Text)
    crm_contact_id = Column(String(64))
    selected_for_outreach = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now())


class IdempotencyKeyRow(Base):
    __tablename__ = "idempotency_keys"

    key = Column(String(200), primary_key=True)  # e.g. "email-send-<email id>"
    operation_type = Column(operation_type_enum, nullable=False)
    resource_id = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    completed_at = Column(DateTime(timezone=True))
    result = Column(JSON)
