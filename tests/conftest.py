"""Pytest configuration and shared fixtures."""

import pytest
from fastapi.testclient import TestClient

from backend.analysis.geography import GazetteerGeocoder
from backend.analysis.pipeline import BriefAnalyzer
from backend.api.routes import Services
from backend.integrations.crm import InMemoryCrm
from backend.integrations.mail import OutboxMailTransport
from backend.integrations.memory_store import InMemoryOutreachStore
from backend.main import create_app
from backend.matching.matcher import CandidateMatcher
from backend.matching.registry import find_organization, load_registry
from backend.matching.search import OrganizationSearch
from backend.reasoning.generator import TemplateEmailGenerator
from backend.workflow.outreach import OutreachWorkflow, WorkflowContext
from backend.workflow.schemas import CrmContact, OutreachCampaign

CORAL_BRIEF = (
    "We are launching a coral reef restoration initiative in the Caribbean "
    "and seek partners in marine conservation."
)


@pytest.fixture(scope="session")
def registry():
    """Bundled organization registry.

    Returns:
        tuple[OrganizationProfile, ...]: All registry organizations
    """
    return load_registry()


@pytest.fixture
def coral_org(registry):
    """Coral Reef Alliance registry entry.

    Returns:
        OrganizationProfile: ngo-008
    """
    return find_organization(registry, "ngo-008")


@pytest.fixture
def coral_brief() -> str:
    """Brief that should surface coral reef organizations.

    Returns:
        str: Brief text
    """
    return CORAL_BRIEF


@pytest.fixture
def geocoder() -> GazetteerGeocoder:
    """Gazetteer-only geocoder, never touches the network.

    Returns:
        GazetteerGeocoder: Offline geocoder
    """
    return GazetteerGeocoder(remote_enabled=False)


@pytest.fixture
def analyzer(geocoder) -> BriefAnalyzer:
    return BriefAnalyzer(geocoder=geocoder)


@pytest.fixture
def matcher() -> CandidateMatcher:
    return CandidateMatcher()


@pytest.fixture
def store() -> InMemoryOutreachStore:
    """Empty in-memory outreach store.

    Returns:
        InMemoryOutreachStore: Store instance
    """
    return InMemoryOutreachStore()


@pytest.fixture
def mail() -> OutboxMailTransport:
    """Mail transport that keeps sent messages in memory.

    Returns:
        OutboxMailTransport: Transport without an outbox directory
    """
    return OutboxMailTransport()


@pytest.fixture
def crm() -> InMemoryCrm:
    """CRM that already knows the Coral Reef Alliance contact.

    Returns:
        InMemoryCrm: CRM with one contact
    """
    return InMemoryCrm([
        CrmContact(id="contact-1", email="info@coralreefalliance.org", company="Coral Reef Alliance")
    ])


@pytest.fixture
def workflow(store, mail, crm, registry) -> OutreachWorkflow:
    """Workflow wired to in-memory collaborators and the template generator.

    Returns:
        OutreachWorkflow: Workflow instance
    """
    return OutreachWorkflow(
        store=store,
        mail=mail,
        generator=TemplateEmailGenerator(),
        crm=crm,
        registry=registry,
    )


@pytest.fixture
def ctx() -> WorkflowContext:
    return WorkflowContext(campaign_id="campaign-reefs", user_id="user-1")


@pytest.fixture
def campaign() -> OutreachCampaign:
    """Sample campaign used for drafting.

    Returns:
        OutreachCampaign: Campaign instance
    """
    return OutreachCampaign(
        id="campaign-reefs",
        name="Caribbean Reef Revival",
        description="A three year programme to restore coral nurseries across the Caribbean.",
        created_by="user-1",
    )


@pytest.fixture
def services(registry, analyzer, workflow) -> Services:
    """Services bundle for the API, built without startup wiring.

    Returns:
        Services: Registry, analyzer, search and workflow
    """
    search = OrganizationSearch(registry, analyzer=analyzer, matcher=CandidateMatcher())
    return Services(registry=registry, analyzer=analyzer, search=search, workflow=workflow)


@pytest.fixture
def test_client(services) -> TestClient:
    """Create FastAPI test client.

    Returns:
        TestClient: FastAPI test client instance
    """
    return TestClient(create_app(services=services))
