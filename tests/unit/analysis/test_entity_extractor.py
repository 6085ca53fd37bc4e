import pytest

from backend.analysis.entity_extractor import EntityExtractor, contains_term, contains_word, dedupe


class TestHelpers:

    def test_dedupe_is_case_insensitive_and_keeps_first_form(self):
        assert dedupe(["Kenya", "kenya", "Peru"]) == ("Kenya", "Peru")

    def test_contains_term_matches_word_prefix(self):
        assert contains_term("reforestation efforts", "reforest") is True
        assert contains_term("the forest", "rest") is False

    def test_contains_word_needs_whole_word(self):
        assert contains_word("a global alliance", "global") is True
        assert contains_word("globally", "global") is False


class TestEntityExtractor:

    @pytest.fixture
    def extractor(self):
        return EntityExtractor()

    @pytest.fixture
    def brief(self):
        return (
            "The Coral Reef Alliance and the Ocean Conservancy will restore 500 acres "
            "of mangroves in Kenya with a $25,000 budget."
        )

    def test_known_organizations(self, extractor, brief):
        organizations = extractor.extract_organizations(brief)

        assert "coral reef alliance" in organizations
        assert "ocean conservancy" in organizations

    def test_suffix_organization_needs_a_real_word_before_it(self, extractor):
        """Test that a stopword before an organization suffix is not an organization."""
        assert extractor.extract_organizations("the foundation will help") == ()
        assert extractor.extract_organizations("a restoration initiative") == ("restoration initiative",)

    def test_locations(self, extractor, brief):
        assert "kenya" in extractor.extract_locations(brief)

    def test_metrics(self, extractor, brief):
        metrics = extractor.extract_metrics(brief)

        assert "500 acres" in metrics
        assert "$25,000" in metrics
        assert "budget" in metrics

    def test_small_bare_numbers_are_not_metrics(self, extractor):
        assert extractor.extract_metrics("We have 7 boats") == ()

    def test_causes_and_activities(self, extractor, brief):
        entities = extractor.extract_entities(brief)

        assert "ocean" in entities.causes
        assert "restore" in entities.activities

    def test_empty_text(self, extractor):
        entities = extractor.extract_entities("")

        assert entities.organizations == ()
        assert entities.locations == ()
        assert entities.causes == ()
        assert entities.activities == ()
        assert entities.metrics == ()
