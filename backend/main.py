"""
Outreach Pipeline — FastAPI Application Entry Point.

Builds the analysis, matching and workflow services from settings and
mounts the API routes.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.analysis.geography import GazetteerGeocoder
from backend.analysis.lexicons import load_lexicons
from backend.analysis.pipeline import BriefAnalyzer
from backend.api.routes import Services, router
from backend.config.settings import Settings, settings
from backend.integrations.crm import HubSpotCrm, InMemoryCrm
from backend.integrations.mail import OutboxMailTransport
from backend.integrations.memory_store import InMemoryOutreachStore
from backend.matching.matcher import CandidateMatcher
from backend.matching.registry import load_registry
from backend.matching.search import OrganizationSearch
from backend.reasoning.generator import AnthropicEmailGenerator, TemplateEmailGenerator
from backend.reasoning.org_search import AnthropicOrganizationSearch
from backend.workflow.outreach import OutreachWorkflow

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────
# Service wiring
# ──────────────────────────────────────────────

async def build_services(config: Settings) -> Services:
    """
    Construct every collaborator from settings.

    Backends without credentials fall back to their in-process versions:
    no Anthropic key means template emails and no live search, no HubSpot
    key means an in-memory CRM.
    """
    lexicons = load_lexicons(config.lexicon_path)
    registry = load_registry(config.registry_path)

    geocoder = GazetteerGeocoder(
        remote_enabled=config.geocoding_remote_enabled,
        base_url=config.nominatim_base_url,
        rate_limit_seconds=config.geocoding_rate_limit_seconds,
        cache_ttl_seconds=config.geocoding_cache_ttl_seconds,
    )
    analyzer = BriefAnalyzer(geocoder=geocoder, lexicons=lexicons)
    matcher = CandidateMatcher(
        lexicons=lexicons, max_results=config.max_results, max_keywords=config.max_keywords
    )

    live_search = None
    if config.live_search_enabled and config.anthropic_api_key:
        live_search = AnthropicOrganizationSearch(config.anthropic_api_key, config.llm_model)
    search = OrganizationSearch(
        registry,
        analyzer=analyzer,
        matcher=matcher,
        live_search=live_search,
        live_search_timeout=config.live_search_timeout_seconds,
    )

    if config.persistence_backend == "sql":
        from backend.db.database import get_sessionmaker, init_db
        from backend.integrations.sql_store import SqlOutreachStore

        await init_db()
        store = SqlOutreachStore(get_sessionmaker())
    else:
        store = InMemoryOutreachStore()

    if config.anthropic_api_key:
        generator = AnthropicEmailGenerator(
            config.anthropic_api_key, config.llm_model, max_tokens=config.llm_max_tokens
        )
    else:
        logger.warning("No Anthropic API key configured, using template email generator")
        generator = TemplateEmailGenerator()

    if config.hubspot_api_key:
        crm = HubSpotCrm(config.hubspot_api_key, base_url=config.hubspot_base_url)
    else:
        crm = InMemoryCrm()

    workflow = OutreachWorkflow(
        store=store,
        mail=OutboxMailTransport(config.outbox_dir),
        generator=generator,
        crm=crm,
        registry=registry,
    )
    return Services(registry=registry, analyzer=analyzer, search=search, workflow=workflow)


# ──────────────────────────────────────────────
# App lifecycle
# ──────────────────────────────────────────────

def create_app(services: Optional[Services] = None, config: Settings = settings) -> FastAPI:
    """Build the app. Tests pass ready-made services to skip startup wiring."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Initializing Outreach Pipeline...")
        if services is None:
            app.state.services = await build_services(config)
        logger.info(f"Loaded {len(app.state.services.registry)} organizations, persistence={config.persistence_backend}")

        yield

        if config.persistence_backend == "sql" and services is None:
            from backend.db.database import dispose_engine
            await dispose_engine()
        logger.info("Shutting down Outreach Pipeline.")

    app = FastAPI(
        title="NGO Outreach Pipeline",
        description="Brief analysis, organization matching and approval-gated outreach",
        version="0.1.0",
        lifespan=lifespan,
    )
    if services is not None:
        app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in config.allowed_origins.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount API routes
    app.include_router(router)

    @app.get("/health")
    async def health():
        return {"status": "ok", "service": "outreach-pipeline", "version": "0.1.0"}

    return app


app = create_app()
