import json

import pytest

from backend.matching.registry import find_organization, load_registry


def test_bundled_registry_loads(registry):
    assert len(registry) == 41
    assert len({org.id for org in registry}) == 41
    assert all(org.selected_for_outreach is False for org in registry)


def test_find_organization(registry):
    assert find_organization(registry, "ngo-008").name == "Coral Reef Alliance"
    assert find_organization(registry, "missing") is None


def test_duplicate_ids_are_rejected(tmp_path):
    path = tmp_path / "orgs.json"
    record = {"id": "dup", "name": "Dup Org", "email": "info@dup.org"}
    path.write_text(json.dumps([record, record]))

    with pytest.raises(ValueError, match="Duplicate organization ids"):
        load_registry(str(path))


def test_custom_registry_path(tmp_path):
    path = tmp_path / "orgs.json"
    path.write_text(json.dumps([
        {"id": "one", "name": "One", "email": "one@example.org", "focus_areas": ["wetlands"]}
    ]))

    registry = load_registry(str(path))

    assert registry[0].focus_areas == ["wetlands"]
    assert registry[0].risk_score is None
