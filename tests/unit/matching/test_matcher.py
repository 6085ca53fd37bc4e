import pytest

from backend.analysis.brief_processor import BriefProcessor
from backend.matching.matcher import CandidateMatcher, MatchWeights
from backend.matching.registry import find_organization
from backend.workflow.schemas import OrganizationProfile


def make_org(org_id: str, name: str, focus_areas: list[str], geography: str = "Caribbean") -> OrganizationProfile:
    return OrganizationProfile(
        id=org_id,
        name=name,
        email=f"info@{org_id}.org",
        geography=geography,
        focus_areas=focus_areas,
    )


class TestExtractKeywords:

    def test_keywords_in_first_seen_order(self, matcher, coral_brief):
        """Test that stopwords and short tokens are dropped and order is kept."""
        processed = BriefProcessor().process_brief(coral_brief)

        assert matcher.extract_keywords(processed) == [
            "launching", "coral", "reef", "restoration", "initiative",
            "caribbean", "partners", "marine", "conservation",
        ]

    def test_keywords_are_capped(self, coral_brief):
        processed = BriefProcessor().process_brief(coral_brief)

        assert len(CandidateMatcher(max_keywords=3).extract_keywords(processed)) == 3


class TestRank:

    @pytest.mark.asyncio
    async def test_coral_brief_ranks_coral_reef_alliance_first(self, analyzer, matcher, registry, coral_brief):
        analysis = await analyzer.analyze(coral_brief)
        results = matcher.match(analysis, registry)
        ids = [org.id for org in results]

        assert ids[0] == "ngo-008"
        assert "ngo-007" in ids
        assert "ngo-018" not in ids
        assert len(results) <= 12

    @pytest.mark.asyncio
    async def test_breakdown_for_top_match(self, analyzer, matcher, registry, coral_brief):
        analysis = await analyzer.analyze(coral_brief)
        top = matcher.rank(analysis, registry)[0]

        assert top.score == 285
        assert top.breakdown.focus_hits == 5
        assert top.breakdown.geography == 1
        assert top.breakdown.intent == 3

    @pytest.mark.asyncio
    async def test_results_are_unselected_copies(self, analyzer, matcher, registry, coral_brief):
        """Test that ranking hands out copies with the selection flag cleared."""
        selected = [org.model_copy(update={"selected_for_outreach": True}) for org in registry]
        analysis = await analyzer.analyze(coral_brief)

        results = matcher.match(analysis, selected)

        assert results
        assert all(org.selected_for_outreach is False for org in results)
        assert all(org.selected_for_outreach is True for org in selected)

    @pytest.mark.asyncio
    async def test_irrelevant_org_scores_zero(self, analyzer, matcher, registry, coral_brief):
        analysis = await analyzer.analyze(coral_brief)
        processed = analysis.processed
        green_worms = find_organization(registry, "ngo-018")

        breakdown = matcher.score(green_worms, analysis, matcher.extract_keywords(processed))

        assert breakdown.relevant is False
        assert breakdown.total == 0

    @pytest.mark.asyncio
    async def test_empty_brief_returns_nothing(self, analyzer, matcher, registry):
        analysis = await analyzer.analyze("")

        assert matcher.rank(analysis, registry) == []

    @pytest.mark.asyncio
    async def test_brief_without_overlap_returns_nothing(self, analyzer, matcher, registry):
        analysis = await analyzer.analyze("Lorem ipsum dolor sit amet.")

        assert matcher.match(analysis, registry) == []

    @pytest.mark.asyncio
    async def test_ranking_is_deterministic(self, analyzer, matcher, registry, coral_brief):
        first = matcher.rank(await analyzer.analyze(coral_brief), registry)
        second = matcher.rank(await analyzer.analyze(coral_brief), registry)

        assert [(r.organization.id, r.score) for r in first] == [(r.organization.id, r.score) for r in second]

    @pytest.mark.asyncio
    async def test_equal_scores_keep_registry_order(self, analyzer, matcher, coral_brief):
        registry = (
            make_org("reef-b", "Bravo Reef Group", ["coral restoration"]),
            make_org("reef-a", "Alpha Reef Group", ["coral restoration"]),
        )
        ranked = matcher.rank(await analyzer.analyze(coral_brief), registry)

        assert [r.organization.id for r in ranked] == ["reef-b", "reef-a"]
        assert ranked[0].score == ranked[1].score

    @pytest.mark.asyncio
    async def test_result_count_is_capped(self, analyzer, registry, coral_brief):
        matcher = CandidateMatcher(max_results=2)
        results = matcher.match(await analyzer.analyze(coral_brief), registry)

        assert len(results) == 2

    @pytest.mark.asyncio
    async def test_custom_weights(self, analyzer, registry, coral_brief):
        """Test that zeroing every weight but focus ranks purely on focus hits."""
        weights = MatchWeights(
            domain=0, geography=0, organization_type=0, intent=0,
            entity=0, tone=0, geographic_fit=0, scope=0,
        )
        ranked = CandidateMatcher(weights=weights).rank(await analyzer.analyze(coral_brief), registry)

        assert all(r.score == r.breakdown.focus_hits * 20 for r in ranked)


class TestSignals:

    def test_geography_match_on_place(self, coral_org):
        assert CandidateMatcher.geography_match("", ["caribbean"], coral_org) == 1
        assert CandidateMatcher.geography_match("", ["kenya"], coral_org) == 0

    def test_global_org_matches_global_brief(self):
        org = make_org("g", "Global Group", ["forests"], geography="Global")

        assert CandidateMatcher.geography_match("a worldwide effort", [], org) == 1

    def test_scope_alignment(self, coral_org):
        assert CandidateMatcher.scope_alignment(coral_org, "global") == 5
        assert CandidateMatcher.scope_alignment(coral_org, "national") == 5
        assert CandidateMatcher.scope_alignment(coral_org, "local") == 2
        assert CandidateMatcher.scope_alignment(coral_org, None) == 3

    def test_geographic_entity_fit_without_locations(self, coral_org):
        assert CandidateMatcher.geographic_entity_fit(coral_org, ()) == 1
