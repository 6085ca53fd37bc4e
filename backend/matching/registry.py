"""
Static candidate registry.

Organizations are reference data shipped as JSON. The registry is loaded
once at startup and treated as read-only; ranking hands out copies.
"""
import json
import logging
from pathlib import Path
from typing import Optional

from backend.workflow.schemas import OrganizationProfile

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_PATH = Path(__file__).resolve().parent.parent / "data" / "organizations.json"


def load_registry(path: Optional[str] = None) -> tuple[OrganizationProfile, ...]:
    registry_path = Path(path) if path else DEFAULT_REGISTRY_PATH
    with registry_path.open(encoding="utf-8") as f:
        records = json.load(f)

    organizations = tuple(OrganizationProfile.model_validate(record) for record in records)
    ids = [org.id for org in organizations]
    if len(set(ids)) != len(ids):
        raise ValueError(f"Duplicate organization ids in registry {registry_path}")

    logger.info(f"Loaded {len(organizations)} organizations from {registry_path}")
    return organizations


def find_organization(
    registry: tuple[OrganizationProfile, ...], organization_id: str
) -> Optional[OrganizationProfile]:
    for org in registry:
        if org.id == organization_id:
            return org
    return None
