import pytest

from backend.analysis.gap_analyzer import GapAnalyzer
from backend.analysis.models import BriefEntities, BriefIntent, BriefTone


def make_intent(goal: str = "partnership", timeline: str = "short-term") -> BriefIntent:
    return BriefIntent(
        primary_goal=goal,
        project_type="tree_planting",
        environmental_domain="forest",
        urgency="medium",
        timeline=timeline,
    )


class TestGapAnalyzer:

    @pytest.fixture
    def analyzer(self):
        return GapAnalyzer()

    def test_thin_funding_brief(self, analyzer):
        """Test that a vague funding ask lists every missing detail."""
        gaps = analyzer.analyze_gaps(
            "We need money for trees.",
            BriefEntities(),
            make_intent(goal="funding"),
            BriefTone(sentiment="neutral", formality="semi-formal"),
        )

        assert gaps.missing_information == (
            "Specific funding amount or budget range",
            "How funds will be used",
            "Specific geographic location or region",
            "Specific timeline or deadline",
            "Contact information for follow-up",
        )
        assert gaps.completeness_score == 40
        assert gaps.priority_improvements == (
            "Add more specific details to improve completeness",
            "Specific funding amount or budget range",
            "Specific timeline or deadline",
        )

    def test_priorities_are_capped_at_three(self, analyzer):
        gaps = analyzer.analyze_gaps(
            "Help",
            BriefEntities(),
            make_intent(goal="funding"),
            BriefTone(sentiment="neutral", formality="semi-formal"),
        )

        assert len(gaps.priority_improvements) <= 3

    def test_partnership_gaps(self, analyzer):
        missing = analyzer.identify_missing_information(
            "Looking for a partner, contact us by email.",
            BriefEntities(locations=("kenya",)),
            make_intent(goal="partnership", timeline="long-term"),
        )

        assert missing == [
            "Specific organizations or types of partners sought",
            "Clear definition of partnership roles",
        ]

    def test_completeness_is_capped(self, analyzer):
        entities = BriefEntities(
            organizations=("coral reef alliance",),
            locations=("kenya",),
            causes=("marine",),
            activities=("restore",),
            metrics=("500 acres",),
        )

        assert analyzer.calculate_completeness("x" * 250, entities, make_intent()) == 100

    def test_vague_words_reduce_clarity_bonus(self, analyzer):
        score = analyzer.calculate_clarity("We need help and support with stuff and things.", BriefEntities())

        assert score == 50

    def test_casual_funding_request_suggestion(self, analyzer):
        suggestions = analyzer.generate_suggestions(
            "hey can u fund us",
            BriefEntities(),
            make_intent(goal="funding"),
            BriefTone(sentiment="neutral", formality="casual"),
        )

        assert "Use more formal language for funding requests" in suggestions
        assert "Be specific about funding amount and intended use" in suggestions
