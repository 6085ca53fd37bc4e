import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from backend.integrations.interfaces import OrganizationSearchProvider
from backend.matching.search import OrganizationSearch
from backend.workflow.schemas import OrganizationProfile


class SlowSearch(OrganizationSearchProvider):

    async def search(self, query: str) -> list[OrganizationProfile]:
        await asyncio.sleep(5)
        return []


def live_orgs(count: int) -> list[OrganizationProfile]:
    return [
        OrganizationProfile(
            id=f"live-{i}",
            name=f"Live Org {i}",
            email=f"info@live{i}.org",
            selected_for_outreach=True,
        )
        for i in range(count)
    ]


class TestOrganizationSearch:

    @pytest.fixture
    def live_search(self) -> Mock:
        """Mock live search provider.

        Returns:
            Mock: Provider whose search is an AsyncMock
        """
        provider = Mock(spec=OrganizationSearchProvider)
        provider.search = AsyncMock()
        return provider

    @pytest.mark.asyncio
    async def test_local_search_without_provider(self, registry, analyzer, coral_brief):
        search = OrganizationSearch(registry, analyzer=analyzer)

        results = await search.search(coral_brief)

        assert results[0].id == "ngo-008"

    @pytest.mark.asyncio
    async def test_empty_brief_skips_live_search(self, registry, analyzer, live_search):
        search = OrganizationSearch(registry, analyzer=analyzer, live_search=live_search)

        assert await search.search("   ") == []
        live_search.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_live_results_are_capped_and_unselected(self, registry, analyzer, live_search, coral_brief):
        live_search.search.return_value = live_orgs(15)
        search = OrganizationSearch(registry, analyzer=analyzer, live_search=live_search)

        results = await search.search(coral_brief)

        assert len(results) == 12
        assert results[0].id == "live-0"
        assert all(org.selected_for_outreach is False for org in results)

    @pytest.mark.asyncio
    async def test_falls_back_when_live_search_fails(self, registry, analyzer, live_search, coral_brief):
        """Test that a provider exception falls back to the local registry."""
        live_search.search.side_effect = RuntimeError("provider down")
        search = OrganizationSearch(registry, analyzer=analyzer, live_search=live_search)

        results = await search.search(coral_brief)

        assert results[0].id == "ngo-008"

    @pytest.mark.asyncio
    async def test_falls_back_when_live_search_is_empty(self, registry, analyzer, live_search, coral_brief):
        live_search.search.return_value = []
        search = OrganizationSearch(registry, analyzer=analyzer, live_search=live_search)

        results = await search.search(coral_brief)

        assert results[0].id == "ngo-008"

    @pytest.mark.asyncio
    async def test_falls_back_when_live_search_times_out(self, registry, analyzer, coral_brief):
        search = OrganizationSearch(
            registry, analyzer=analyzer, live_search=SlowSearch(), live_search_timeout=0.05
        )

        results = await search.search(coral_brief)

        assert results[0].id == "ngo-008"

    @pytest.mark.asyncio
    async def test_rank_uses_local_registry_only(self, registry, analyzer, live_search, coral_brief):
        search = OrganizationSearch(registry, analyzer=analyzer, live_search=live_search)

        ranked = await search.rank(coral_brief)

        assert ranked[0].organization.id == "ngo-008"
        live_search.search.assert_not_called()
