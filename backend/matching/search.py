"""
Organization search: optional live search with a mandatory local fallback.
"""
import asyncio
import logging
from typing import Optional, Sequence

from backend.analysis.pipeline import BriefAnalyzer
from backend.integrations.interfaces import OrganizationSearchProvider
from backend.matching.matcher import CandidateMatcher, RankedOrganization
from backend.workflow.schemas import OrganizationProfile

logger = logging.getLogger(__name__)


class OrganizationSearch:
    """Answers "which organizations fit this brief?"."""

    def __init__(
        self,
        registry: Sequence[OrganizationProfile],
        analyzer: Optional[BriefAnalyzer] = None,
        matcher: Optional[CandidateMatcher] = None,
        live_search: Optional[OrganizationSearchProvider] = None,
        live_search_timeout: float = 20.0,
    ):
        self.registry = tuple(registry)
        self.analyzer = analyzer or BriefAnalyzer()
        self.matcher = matcher or CandidateMatcher()
        self.live_search = live_search
        self.live_search_timeout = live_search_timeout

    async def search(self, brief: str) -> list[OrganizationProfile]:
        """
        Return up to ``max_results`` organizations for a brief.

        A configured live provider is tried first under a timeout. Any
        failure or an empty answer falls through to the local matcher.
        """
        if not brief or not brief.strip():
            return []

        if self.live_search is not None:
            live = await self._try_live_search(brief)
            if live:
                return live

        return [r.organization for r in await self.rank(brief)]

    async def rank(self, brief: str) -> list[RankedOrganization]:
        """Rank the local registry only, keeping score breakdowns."""
        if not brief or not brief.strip():
            return []
        analysis = await self.analyzer.analyze(brief)
        return self.matcher.rank(analysis, self.registry)

    async def _try_live_search(self, brief: str) -> list[OrganizationProfile]:
        try:
            results = await asyncio.wait_for(
                self.live_search.search(brief), timeout=self.live_search_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"[search] Live search timed out after {self.live_search_timeout}s, using local registry"
            )
            return []
        except Exception as e:
            logger.warning(f"[search] Live search failed ({e}), using local registry")
            return []

        if not results:
            logger.info("[search] Live search returned no results, using local registry")
            return []

        logger.info(f"[search] Live search returned {len(results)} organizations")
        return [
            org.model_copy(update={"selected_for_outreach": False}, deep=True)
            for org in results[: self.matcher.max_results]
        ]
