"""
SQLAlchemy-backed OutreachStore.

Every call opens its own short session, so the workflow never holds a
transaction across a generation or send call.
"""
import logging
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.db.models import (
    DraftEmailRow,
    IdempotencyKeyRow,
    OrganizationProfileRow,
    UserApprovalRow,
    WorkflowStateRow,
)
from backend.integrations.interfaces import OutreachStore, StoreResult
from backend.workflow.schemas import (
    DraftEmail,
    IdempotencyKey,
    OrganizationProfile,
    ResourceType,
    UserApproval,
    WorkflowStage,
    WorkflowState,
    utcnow,
)

logger = logging.getLogger(__name__)


class SqlOutreachStore(OutreachStore):

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def _merge(self, row, entity) -> StoreResult:
        try:
            async with self.session_factory() as session:
                await session.merge(row)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Failed to save {type(entity).__name__}: {e}")
            return StoreResult(success=False, error=str(e))
        return StoreResult(success=True, entity=entity)

    async def _get(self, row_cls, key, model_cls):
        async with self.session_factory() as session:
            row = await session.get(row_cls, key)
            return model_cls.model_validate(row) if row is not None else None

    # ── Workflow state ───────────────────────────

    async def save_workflow_state(self, state: WorkflowState) -> StoreResult[WorkflowState]:
        return await self._merge(WorkflowStateRow(**state.model_dump()), state)

    async def get_workflow_state(self, workflow_id: str) -> Optional[WorkflowState]:
        return await self._get(WorkflowStateRow, workflow_id, WorkflowState)

    async def get_workflow_states_by_campaign(self, campaign_id: str) -> list[WorkflowState]:
        async with self.session_factory() as session:
            rows = (await session.execute(
                select(WorkflowStateRow)
                .where(WorkflowStateRow.campaign_id == campaign_id)
                .order_by(WorkflowStateRow.created_at)
            )).scalars().all()
            return [WorkflowState.model_validate(r) for r in rows]

    async def update_workflow_stage(
        self, workflow_id: str, stage: WorkflowStage, data: Optional[dict[str, Any]] = None
    ) -> StoreResult[WorkflowState]:
        try:
            async with self.session_factory() as session:
                row = await session.get(WorkflowStateRow, workflow_id)
                if row is None:
                    return StoreResult(success=False, error=f"Workflow {workflow_id} not found")
                row.stage = stage
                # Assign a new dict so the JSON column is flagged dirty
                row.data = {**(row.data or {}), **(data or {})}
                row.updated_at = utcnow()
                await session.commit()
                return StoreResult(success=True, entity=WorkflowState.model_validate(row))
        except SQLAlchemyError as e:
            logger.error(f"Failed to update stage for workflow {workflow_id}: {e}")
            return StoreResult(success=False, error=str(e))

    # ── Draft emails ─────────────────────────────

    async def save_draft_email(self, email: DraftEmail) -> StoreResult[DraftEmail]:
        return await self._merge(DraftEmailRow(**email.model_dump()), email)

    async def get_draft_email(self, email_id: str) -> Optional[DraftEmail]:
        return await self._get(DraftEmailRow, email_id, DraftEmail)

    async def list_draft_emails_by_campaign(self, campaign_id: str) -> list[DraftEmail]:
        async with self.session_factory() as session:
            rows = (await session.execute(
                select(DraftEmailRow)
                .where(DraftEmailRow.campaign_id == campaign_id)
                .order_by(DraftEmailRow.created_at)
            )).scalars().all()
            return [DraftEmail.model_validate(r) for r in rows]

    # ── Approvals ────────────────────────────────

    async def save_user_approval(self, approval: UserApproval) -> StoreResult[UserApproval]:
        """Insert only. An existing approval id is a failed result, never an update."""
        try:
            async with self.session_factory() as session:
                session.add(UserApprovalRow(**approval.model_dump()))
                await session.commit()
        except IntegrityError:
            logger.warning(f"Approval {approval.id} already exists")
            return StoreResult(success=False, error=f"Approval {approval.id} already exists")
        except SQLAlchemyError as e:
            logger.error(f"Failed to save UserApproval: {e}")
            return StoreResult(success=False, error=str(e))
        return StoreResult(success=True, entity=approval)

    async def get_user_approval(self, approval_id: str) -> Optional[UserApproval]:
        return await self._get(UserApprovalRow, approval_id, UserApproval)

    async def has_approval(self, resource_type: str, resource_id: str) -> bool:
        async with self.session_factory() as session:
            row = (await session.execute(
                select(UserApprovalRow.id)
                .where(
                    UserApprovalRow.resource_type == ResourceType(resource_type),
                    UserApprovalRow.resource_id == resource_id,
                )
                .limit(1)
            )).scalar_one_or_none()
            return row is not None

    # ── Organizations ────────────────────────────

    async def save_org_profile(self, org: OrganizationProfile) -> StoreResult[OrganizationProfile]:
        return await self._merge(OrganizationProfileRow(**org.model_dump()), org)

    async def get_org_profile(self, org_id: str) -> Optional[OrganizationProfile]:
        return await self._get(OrganizationProfileRow, org_id, OrganizationProfile)

    # ── Idempotency ──────────────────────────────

    async def record_idempotency_key(self, key: IdempotencyKey) -> StoreResult[IdempotencyKey]:
        return await self._merge(IdempotencyKeyRow(**key.model_dump()), key)

    async def get_idempotency_key(self, key: str) -> Optional[IdempotencyKey]:
        return await self._get(IdempotencyKeyRow, key, IdempotencyKey)
