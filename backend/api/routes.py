"""
FastAPI REST API routes for brief analysis, organization search and the
outreach workflow.
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from backend.analysis.pipeline import BriefAnalyzer
from backend.matching.registry import find_organization
from backend.matching.search import OrganizationSearch
from backend.workflow.errors import ErrorKind
from backend.workflow.outreach import OutreachWorkflow, WorkflowContext
from backend.workflow.schemas import (
    DraftEmail,
    GenerateDraftResult,
    InitiateOutreachResult,
    OperationResult,
    OrganizationProfile,
    OutreachCampaign,
    RecordApprovalResult,
    RiskAssessment,
    SendEmailResult,
    TransitionResult,
    WorkflowState,
)

router = APIRouter(prefix="/api")

STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.APPROVAL: 403,
    ErrorKind.COLLABORATOR: 502,
}


@dataclass
class Services:
    """Everything the routes need, built once at startup."""
    registry: tuple[OrganizationProfile, ...]
    analyzer: BriefAnalyzer
    search: OrganizationSearch
    workflow: OutreachWorkflow


def get_services(request: Request) -> Services:
    return request.app.state.services


def _unwrap(result: OperationResult) -> OperationResult:
    if result.success:
        return result
    kind = result.error_kind or ErrorKind.COLLABORATOR
    raise HTTPException(
        status_code=STATUS_BY_KIND[kind],
        detail={
            "error": result.error,
            "error_kind": kind.value,
            "errors": [e.model_dump(mode="json") for e in result.errors],
            "approval_reason": result.approval_reason.value if result.approval_reason else None,
        },
    )


# ──────────────────────────────────────────────
# Pydantic schemas
# ──────────────────────────────────────────────

class BriefRequest(BaseModel):
    brief: str


class SearchRequest(BaseModel):
    brief: str
    include_scores: bool = False


class InitiateRequest(BaseModel):
    campaign_id: str
    user_id: str
    organization_id: Optional[str] = None
    organization: Optional[dict[str, Any]] = None


class DraftRequest(BaseModel):
    user_id: str
    campaign_name: str
    campaign_description: str = ""


class ActorRequest(BaseModel):
    user_id: str


class ApprovalRequest(BaseModel):
    user_id: str
    campaign_id: str = ""
    approval: dict[str, Any]


class SendRequest(BaseModel):
    user_id: str
    campaign_id: str = ""
    approval: Optional[dict[str, Any]] = None
    follow_up_after_days: Optional[float] = Field(default=None, gt=0)


# ──────────────────────────────────────────────
# Brief analysis and search
# ──────────────────────────────────────────────

@router.post("/briefs/analyze")
async def analyze_brief(body: BriefRequest, services: Services = Depends(get_services)):
    """Full analysis of a brief: structure, quality, entities, intent, tone, gaps."""
    return await services.analyzer.analyze(body.brief)


@router.post("/organizations/search")
async def search_organizations(body: SearchRequest, services: Services = Depends(get_services)):
    """Rank organizations for a brief. Scores come from the local registry only."""
    if body.include_scores:
        ranked = await services.search.rank(body.brief)
        return {
            "organizations": [
                {"organization": r.organization, "score": r.score, "breakdown": r.breakdown}
                for r in ranked
            ],
            "total": len(ranked),
        }

    organizations = await services.search.search(body.brief)
    return {"organizations": organizations, "total": len(organizations)}


@router.get("/organizations", response_model=list[OrganizationProfile])
async def list_organizations(services: Services = Depends(get_services)):
    return list(services.registry)


@router.get("/organizations/{org_id}/risk", response_model=RiskAssessment)
async def get_risk_assessment(org_id: str, user_id: str = "", services: Services = Depends(get_services)):
    """Advisory risk data for display. Never used to gate outreach."""
    assessment = await services.workflow.get_advisory_risk_assessment(
        WorkflowContext(campaign_id="", user_id=user_id), org_id
    )
    if assessment is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return assessment


# ──────────────────────────────────────────────
# Workflow endpoints
# ──────────────────────────────────────────────

@router.post("/workflows", response_model=InitiateOutreachResult)
async def initiate_outreach(body: InitiateRequest, services: Services = Depends(get_services)):
    if body.organization is not None:
        org = body.organization
    elif body.organization_id:
        org = find_organization(services.registry, body.organization_id)
        if org is None:
            raise HTTPException(status_code=404, detail="Organization not found")
    else:
        raise HTTPException(status_code=422, detail="organization_id or organization is required")

    ctx = WorkflowContext(campaign_id=body.campaign_id, user_id=body.user_id)
    return _unwrap(await services.workflow.initiate_outreach(ctx, org))


@router.get("/workflows/{workflow_id}", response_model=WorkflowState)
async def get_workflow(workflow_id: str, services: Services = Depends(get_services)):
    state = await services.workflow.get_workflow(workflow_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Workflow not found")
    return state


@router.post("/workflows/{workflow_id}/draft", response_model=GenerateDraftResult)
async def generate_draft(workflow_id: str, body: DraftRequest, services: Services = Depends(get_services)):
    state = await services.workflow.get_workflow(workflow_id)
    if state is None:
        raise HTTPException(status_code=404, detail="Workflow not found")

    campaign = OutreachCampaign(
        id=state.campaign_id,
        name=body.campaign_name,
        description=body.campaign_description,
        created_by=body.user_id,
    )
    ctx = WorkflowContext(campaign_id=state.campaign_id, user_id=body.user_id)
    return _unwrap(await services.workflow.generate_email_draft(ctx, workflow_id, campaign))


@router.post("/workflows/{workflow_id}/review", response_model=TransitionResult)
async def submit_for_review(workflow_id: str, body: ActorRequest, services: Services = Depends(get_services)):
    ctx = WorkflowContext(campaign_id="", user_id=body.user_id)
    return _unwrap(await services.workflow.submit_for_review(ctx, workflow_id))


@router.post("/workflows/{workflow_id}/complete", response_model=TransitionResult)
async def complete_outreach(workflow_id: str, body: ActorRequest, services: Services = Depends(get_services)):
    ctx = WorkflowContext(campaign_id="", user_id=body.user_id)
    return _unwrap(await services.workflow.complete_outreach(ctx, workflow_id))


@router.post("/approvals", response_model=RecordApprovalResult)
async def record_approval(body: ApprovalRequest, services: Services = Depends(get_services)):
    ctx = WorkflowContext(campaign_id=body.campaign_id, user_id=body.user_id)
    return _unwrap(await services.workflow.record_approval(ctx, body.approval))


@router.get("/emails/{email_id}", response_model=DraftEmail)
async def get_email(email_id: str, services: Services = Depends(get_services)):
    email = await services.workflow.get_email(email_id)
    if email is None:
        raise HTTPException(status_code=404, detail="Email not found")
    return email


@router.post("/emails/{email_id}/send", response_model=SendEmailResult)
async def send_email(email_id: str, body: SendRequest, services: Services = Depends(get_services)):
    """Send an approved email. Repeating the call never sends twice."""
    follow_up = timedelta(days=body.follow_up_after_days) if body.follow_up_after_days else None
    ctx = WorkflowContext(campaign_id=body.campaign_id, user_id=body.user_id)
    return _unwrap(
        await services.workflow.send_email_with_approval(ctx, email_id, body.approval, follow_up_after=follow_up)
    )
