"""
Outreach workflow state machine.

Drives one (campaign, organization) engagement from initial research to a
sent email:

    initial_research -> draft_generation -> user_review -> approval_pending
        -> sending -> {completed | failed}

``follow_up`` sits between a successful send and ``completed`` when a
follow-up was scheduled, and ``failed`` may re-enter ``sending``.

Two guarantees hold for every send:

1. No email goes out without a matching, currently valid approval that has
   been recorded in the store.
2. An email is dispatched at most once. The ``email-send-<id>`` key is
   reserved before dispatch and completed after, so a completed key short
   circuits any later attempt.

Operations report failures as result objects; only exceptions raised by
collaborators propagate.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional, Sequence, Union

from backend.integrations.interfaces import (
    CrmAdapter,
    EmailGenerationService,
    MailTransport,
    OutreachStore,
    StoreResult,
)
from backend.workflow.errors import ApprovalFailure, ErrorKind, PersistenceError
from backend.workflow.schemas import (
    DraftEmail,
    EmailStatus,
    GenerateDraftResult,
    IdempotencyKey,
    InitiateOutreachResult,
    OperationType,
    OrganizationProfile,
    OutreachCampaign,
    RecordApprovalResult,
    ResourceType,
    RiskAssessment,
    SendEmailResult,
    TransitionResult,
    UserApproval,
    WorkflowStage,
    WorkflowState,
    utcnow,
)
from backend.workflow.validation import (
    format_validation_errors,
    validate_ai_generated_email,
    validate_draft_email,
    validate_organization,
    validate_user_approval,
)

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("backend.workflow.audit")

ALLOWED_TRANSITIONS: dict[WorkflowStage, set[WorkflowStage]] = {
    WorkflowStage.INITIAL_RESEARCH: {WorkflowStage.DRAFT_GENERATION},
    WorkflowStage.DRAFT_GENERATION: {WorkflowStage.DRAFT_GENERATION, WorkflowStage.USER_REVIEW},
    WorkflowStage.USER_REVIEW: {WorkflowStage.DRAFT_GENERATION, WorkflowStage.APPROVAL_PENDING},
    WorkflowStage.APPROVAL_PENDING: {WorkflowStage.SENDING},
    WorkflowStage.SENDING: {WorkflowStage.FOLLOW_UP, WorkflowStage.COMPLETED, WorkflowStage.FAILED},
    WorkflowStage.FOLLOW_UP: {WorkflowStage.COMPLETED},
    WorkflowStage.FAILED: {WorkflowStage.SENDING},
    WorkflowStage.COMPLETED: set(),
}

DRAFTABLE_STAGES = {
    WorkflowStage.INITIAL_RESEARCH,
    WorkflowStage.DRAFT_GENERATION,
    WorkflowStage.USER_REVIEW,
}

APPROVABLE_STAGES = {
    WorkflowStage.DRAFT_GENERATION,
    WorkflowStage.USER_REVIEW,
}


def send_key(email_id: str) -> str:
    return f"email-send-{email_id}"


def follow_up_key(email_id: str) -> str:
    return f"email-followup-{email_id}"


@dataclass(frozen=True)
class WorkflowContext:
    """Who is acting, and on behalf of which campaign."""
    campaign_id: str
    user_id: str
    organization_id: Optional[str] = None


class OutreachWorkflow:

    def __init__(
        self,
        store: OutreachStore,
        mail: MailTransport,
        generator: EmailGenerationService,
        crm: Optional[CrmAdapter] = None,
        registry: Sequence[OrganizationProfile] = (),
    ):
        self.store = store
        self.mail = mail
        self.generator = generator
        self.crm = crm
        self.registry = {org.id: org for org in registry}

    # ──────────────────────────────────────────────
    # Helpers
    # ──────────────────────────────────────────────

    @staticmethod
    def _require(result: StoreResult, action: str):
        if not result.success:
            raise PersistenceError(f"Failed to {action}: {result.error}")
        return result.entity

    async def _advance(
        self,
        state: WorkflowState,
        target: WorkflowStage,
        data: Optional[dict[str, Any]] = None,
    ) -> WorkflowState:
        if target not in ALLOWED_TRANSITIONS[state.stage]:
            logger.warning(
                f"[workflow {state.id}] Unexpected transition {state.stage.value} -> {target.value}"
            )
        updated = self._require(
            await self.store.update_workflow_stage(state.id, target, data),
            f"move workflow {state.id} to {target.value}",
        )
        logger.info(f"[workflow {state.id}] {state.stage.value} -> {target.value}")
        return updated

    # ──────────────────────────────────────────────
    # Initiation and drafting
    # ──────────────────────────────────────────────

    async def initiate_outreach(
        self, ctx: WorkflowContext, org: Union[OrganizationProfile, dict]
    ) -> InitiateOutreachResult:
        """Start an engagement with ``org``. Its risk score is never read."""
        outcome = validate_organization(org)
        if not outcome.valid:
            return InitiateOutreachResult.failure(
                ErrorKind.VALIDATION,
                f"Invalid organization: {format_validation_errors(outcome.errors)}",
                errors=outcome.errors,
            )
        org = outcome.data

        data: dict[str, Any] = {"organization_name": org.name, "recipient_email": org.email}
        if self.crm is not None:
            contact = await self.crm.get_contact_by_email(org.email)
            if contact is not None:
                data["crm_contact_id"] = contact.id

        state = WorkflowState(
            campaign_id=ctx.campaign_id,
            organization_id=org.id,
            stage=WorkflowStage.INITIAL_RESEARCH,
            data=data,
            created_by=ctx.user_id,
        )
        try:
            if await self.store.get_org_profile(org.id) is None:
                self._require(await self.store.save_org_profile(org), f"save organization {org.id}")
            state = self._require(await self.store.save_workflow_state(state), "save workflow state")
        except PersistenceError as e:
            logger.error(f"Could not initiate outreach to {org.id}: {e}")
            return InitiateOutreachResult.failure(ErrorKind.COLLABORATOR, e.message)

        logger.info(f"[workflow {state.id}] Initiated outreach to {org.name} for campaign {ctx.campaign_id}")
        return InitiateOutreachResult(success=True, workflow_id=state.id, workflow_state=state)

    async def generate_email_draft(
        self, ctx: WorkflowContext, workflow_id: str, campaign: OutreachCampaign
    ) -> GenerateDraftResult:
        state = await self.store.get_workflow_state(workflow_id)
        if state is None:
            return GenerateDraftResult.failure(ErrorKind.NOT_FOUND, f"Workflow {workflow_id} not found")

        org = await self.store.get_org_profile(state.organization_id)
        if org is None:
            return GenerateDraftResult.failure(
                ErrorKind.NOT_FOUND, f"Organization {state.organization_id} not found"
            )

        if state.stage not in DRAFTABLE_STAGES:
            logger.warning(f"[workflow {state.id}] Generating a draft at stage {state.stage.value}")

        generation = await self.generator.generate_email(org, campaign)
        if not generation.success:
            return GenerateDraftResult.failure(
                ErrorKind.COLLABORATOR, f"Email generation failed: {generation.error}"
            )

        generated = validate_ai_generated_email(generation.data)
        if not generated.valid:
            return GenerateDraftResult.failure(
                ErrorKind.VALIDATION,
                f"Generated email failed validation: {format_validation_errors(generated.errors)}",
                errors=generated.errors,
            )

        draft_outcome = validate_draft_email({
            "campaign_id": state.campaign_id,
            "organization_id": org.id,
            "workflow_id": state.id,
            "status": EmailStatus.DRAFT,
            "subject": generated.data.subject,
            "body": generated.data.body,
            "recipient_email": org.email,
        })
        if not draft_outcome.valid:
            return GenerateDraftResult.failure(
                ErrorKind.VALIDATION,
                f"Draft email is invalid: {format_validation_errors(draft_outcome.errors)}",
                errors=draft_outcome.errors,
            )
        draft = draft_outcome.data

        try:
            self._require(await self.store.save_draft_email(draft), f"save draft email {draft.id}")
            await self._advance(state, WorkflowStage.DRAFT_GENERATION, {"draft_email_id": draft.id})
        except PersistenceError as e:
            return GenerateDraftResult.failure(ErrorKind.COLLABORATOR, e.message)

        logger.info(f"[workflow {state.id}] Draft {draft.id} created for {org.name}")
        return GenerateDraftResult(success=True, draft_email=draft, generated_email=generated.data)

    async def submit_for_review(self, ctx: WorkflowContext, workflow_id: str) -> TransitionResult:
        state = await self.store.get_workflow_state(workflow_id)
        if state is None:
            return TransitionResult.failure(ErrorKind.NOT_FOUND, f"Workflow {workflow_id} not found")
        try:
            state = await self._advance(state, WorkflowStage.USER_REVIEW, {"submitted_by": ctx.user_id})
        except PersistenceError as e:
            return TransitionResult.failure(ErrorKind.COLLABORATOR, e.message)
        return TransitionResult(success=True, workflow_state=state)

    # ──────────────────────────────────────────────
    # Approval and sending
    # ──────────────────────────────────────────────

    async def record_approval(
        self, ctx: WorkflowContext, approval: Union[UserApproval, dict]
    ) -> RecordApprovalResult:
        """
        Persist an approval. Whether it fits an email is checked at send time.

        Approvals are immutable: replaying the same approval is a no-op
        success, reusing its id with different content is rejected.
        """
        outcome = validate_user_approval(approval)
        if not outcome.valid:
            return RecordApprovalResult.failure(
                ErrorKind.VALIDATION,
                f"Invalid approval: {format_validation_errors(outcome.errors)}",
                errors=outcome.errors,
            )
        approval = outcome.data

        existing = await self.store.get_user_approval(approval.id)
        if existing is not None:
            # approved_at defaults to now on a replayed payload
            if existing.model_dump(exclude={"approved_at"}) != approval.model_dump(exclude={"approved_at"}):
                audit_logger.warning(
                    f"Approval {approval.id} rejected: already recorded by {existing.approved_by} "
                    f"for {existing.resource_type.value} {existing.resource_id}"
                )
                return RecordApprovalResult.failure(
                    ErrorKind.VALIDATION, f"Approval {approval.id} already exists and cannot be changed"
                )
            return RecordApprovalResult(success=True, approval_id=existing.id)

        try:
            self._require(await self.store.save_user_approval(approval), f"save approval {approval.id}")
            if approval.resource_type == ResourceType.EMAIL:
                draft = await self.store.get_draft_email(approval.resource_id)
                state = await self.store.get_workflow_state(draft.workflow_id) if draft and draft.workflow_id else None
                if state is not None and state.stage in APPROVABLE_STAGES:
                    await self._advance(state, WorkflowStage.APPROVAL_PENDING, {"approval_id": approval.id})
        except PersistenceError as e:
            return RecordApprovalResult.failure(ErrorKind.COLLABORATOR, e.message)

        audit_logger.info(
            f"Approval {approval.id} recorded by {approval.approved_by} "
            f"for {approval.resource_type.value} {approval.resource_id}"
        )
        return RecordApprovalResult(success=True, approval_id=approval.id)

    def _reject(
        self, ctx: WorkflowContext, email_id: str, reason: ApprovalFailure, message: str
    ) -> SendEmailResult:
        audit_logger.warning(
            f"[email {email_id}] Send rejected for user {ctx.user_id}: {reason.value}: {message}"
        )
        return SendEmailResult.failure(
            ErrorKind.APPROVAL, message, approval_reason=reason, email_id=email_id
        )

    async def _verify_approval(
        self, ctx: WorkflowContext, draft: DraftEmail, approval: Any
    ) -> tuple[Optional[UserApproval], Optional[SendEmailResult]]:
        if approval is None:
            return None, self._reject(ctx, draft.id, ApprovalFailure.MISSING, "Approval is required to send email")

        outcome = validate_user_approval(approval)
        if not outcome.valid:
            return None, self._reject(
                ctx, draft.id, ApprovalFailure.MISSING,
                f"Approval is malformed: {format_validation_errors(outcome.errors)}",
            )
        supplied = outcome.data

        if supplied.resource_type != ResourceType.EMAIL or supplied.resource_id != draft.id:
            return None, self._reject(
                ctx, draft.id, ApprovalFailure.MISMATCHED, "Approval does not match this email"
            )

        stored = await self.store.get_user_approval(supplied.id)
        if stored is None:
            return None, self._reject(
                ctx, draft.id, ApprovalFailure.NOT_RECORDED, f"Approval {supplied.id} has not been recorded"
            )
        if stored.resource_type != ResourceType.EMAIL or stored.resource_id != draft.id:
            return None, self._reject(
                ctx, draft.id, ApprovalFailure.MISMATCHED, "Recorded approval does not match this email"
            )

        now = utcnow()
        if stored.approved_at > now:
            return None, self._reject(
                ctx, draft.id, ApprovalFailure.NOT_YET_VALID, "Approval timestamp is in the future"
            )
        if stored.expires_at is not None and stored.expires_at <= now:
            return None, self._reject(ctx, draft.id, ApprovalFailure.EXPIRED, "Approval has expired")

        return stored, None

    async def send_email_with_approval(
        self,
        ctx: WorkflowContext,
        email_id: str,
        approval: Union[UserApproval, dict, None],
        follow_up_after: Optional[timedelta] = None,
    ) -> SendEmailResult:
        draft = await self.store.get_draft_email(email_id)
        if draft is None:
            return SendEmailResult.failure(ErrorKind.NOT_FOUND, f"Email {email_id} not found", email_id=email_id)

        if draft.status == EmailStatus.SENT:
            return SendEmailResult(
                success=True,
                email_id=draft.id,
                message_id=draft.message_id,
                sent_at=draft.sent_at,
                message="Email already sent",
                already_sent=True,
            )

        approval, rejection = await self._verify_approval(ctx, draft, approval)
        if rejection is not None:
            return rejection

        key = send_key(draft.id)
        existing = await self.store.get_idempotency_key(key)
        if existing is not None and existing.completed:
            result = existing.result or {}
            logger.info(f"[email {draft.id}] Send skipped, idempotency key {key} already completed")
            return SendEmailResult(
                success=True,
                email_id=draft.id,
                message_id=result.get("message_id"),
                sent_at=result.get("sent_at"),
                message="Email already sent (idempotency)",
                already_sent=True,
            )

        state = await self.store.get_workflow_state(draft.workflow_id) if draft.workflow_id else None
        try:
            if state is not None:
                state = await self._advance(state, WorkflowStage.SENDING)
            if existing is None:
                self._require(
                    await self.store.record_idempotency_key(
                        IdempotencyKey(key=key, operation_type=OperationType.SEND_EMAIL, resource_id=draft.id)
                    ),
                    f"reserve idempotency key {key}",
                )
        except PersistenceError as e:
            return SendEmailResult.failure(ErrorKind.COLLABORATOR, e.message, email_id=draft.id)

        sent = await self.mail.send_approved_email(draft, approval)
        if not sent.success:
            return await self._record_send_failure(draft, state, sent.error)

        sent_at = sent.sent_at or utcnow()
        sent_draft = draft.model_copy(update={
            "status": EmailStatus.SENT,
            "approved_at": approval.approved_at,
            "approved_by": approval.approved_by,
            "sent_at": sent_at,
            "sent_by": ctx.user_id,
            "message_id": sent.message_id,
            "failure_reason": None,
            "updated_at": utcnow(),
        })

        try:
            self._require(
                await self.store.record_idempotency_key(IdempotencyKey(
                    key=key,
                    operation_type=OperationType.SEND_EMAIL,
                    resource_id=draft.id,
                    created_at=existing.created_at if existing else utcnow(),
                    completed_at=utcnow(),
                    result={"message_id": sent.message_id, "sent_at": sent_at.isoformat()},
                )),
                f"complete idempotency key {key}",
            )
            self._require(await self.store.save_draft_email(sent_draft), f"mark email {draft.id} sent")

            follow_up_id = None
            if follow_up_after is not None:
                follow_up_id = await self._schedule_follow_up(sent_draft, approval, follow_up_after)

            if state is not None:
                await self._advance(
                    state,
                    WorkflowStage.FOLLOW_UP if follow_up_id else WorkflowStage.COMPLETED,
                    {"message_id": sent.message_id, "scheduled_follow_up_id": follow_up_id},
                )
        except PersistenceError as e:
            logger.error(f"[email {draft.id}] Sent as {sent.message_id} but bookkeeping failed: {e}")
            return SendEmailResult.failure(ErrorKind.COLLABORATOR, e.message, email_id=draft.id)

        audit_logger.info(
            f"[email {draft.id}] Sent to {draft.recipient_email} by {ctx.user_id} under approval {approval.id}"
        )
        return SendEmailResult(
            success=True,
            email_id=draft.id,
            message_id=sent.message_id,
            sent_at=sent_at,
            message="Email sent",
            scheduled_follow_up_id=follow_up_id,
        )

    async def _record_send_failure(
        self, draft: DraftEmail, state: Optional[WorkflowState], error: Optional[str]
    ) -> SendEmailResult:
        # The send key stays uncompleted, so the same approval can retry
        logger.error(f"[email {draft.id}] Mail transport failed: {error}")
        failed = draft.model_copy(update={
            "status": EmailStatus.FAILED,
            "failure_reason": error,
            "updated_at": utcnow(),
        })
        try:
            self._require(await self.store.save_draft_email(failed), f"mark email {draft.id} failed")
            if state is not None:
                await self._advance(state, WorkflowStage.FAILED, {"failure_reason": error})
        except PersistenceError as e:
            logger.error(f"[email {draft.id}] Could not record send failure: {e}")
        return SendEmailResult.failure(
            ErrorKind.COLLABORATOR, f"Email send failed: {error}", email_id=draft.id
        )

    async def _schedule_follow_up(
        self, draft: DraftEmail, approval: UserApproval, delay: timedelta
    ) -> Optional[str]:
        key = follow_up_key(draft.id)
        existing = await self.store.get_idempotency_key(key)
        if existing is not None and existing.completed:
            return (existing.result or {}).get("scheduled_email_id")

        scheduled = await self.mail.schedule_follow_up(draft, approval, delay, key)
        if not scheduled.success:
            logger.warning(f"[email {draft.id}] Follow-up scheduling failed: {scheduled.error}")
            return None

        self._require(
            await self.store.record_idempotency_key(IdempotencyKey(
                key=key,
                operation_type=OperationType.SCHEDULE_FOLLOWUP,
                resource_id=draft.id,
                completed_at=utcnow(),
                result={"scheduled_email_id": scheduled.scheduled_email_id},
            )),
            f"record idempotency key {key}",
        )
        return scheduled.scheduled_email_id

    async def complete_outreach(self, ctx: WorkflowContext, workflow_id: str) -> TransitionResult:
        state = await self.store.get_workflow_state(workflow_id)
        if state is None:
            return TransitionResult.failure(ErrorKind.NOT_FOUND, f"Workflow {workflow_id} not found")
        if state.stage == WorkflowStage.COMPLETED:
            return TransitionResult(success=True, workflow_state=state)
        try:
            state = await self._advance(state, WorkflowStage.COMPLETED, {"completed_by": ctx.user_id})
        except PersistenceError as e:
            return TransitionResult.failure(ErrorKind.COLLABORATOR, e.message)
        return TransitionResult(success=True, workflow_state=state)

    # ──────────────────────────────────────────────
    # Reads
    # ──────────────────────────────────────────────

    async def get_workflow(self, workflow_id: str) -> Optional[WorkflowState]:
        return await self.store.get_workflow_state(workflow_id)

    async def get_email(self, email_id: str) -> Optional[DraftEmail]:
        return await self.store.get_draft_email(email_id)

    async def get_advisory_risk_assessment(
        self, ctx: WorkflowContext, org_id: str
    ) -> Optional[RiskAssessment]:
        """Presentation data only. Nothing in this workflow reads it back."""
        org = await self.store.get_org_profile(org_id) or self.registry.get(org_id)
        if org is None:
            return None
        return RiskAssessment(
            organization_id=org.id,
            risk_score=org.risk_score,
            controversy_summary=org.controversy_summary or "",
            sources=[org.domain] if org.domain else [],
        )
