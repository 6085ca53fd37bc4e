"""
Geographic resolution for brief localization.

Looks place names up in a bundled gazetteer first and, when enabled, falls
back to the OpenStreetMap Nominatim API. Results (including misses) are
cached for a configurable TTL and remote calls are rate limited.
"""
import asyncio
import json
import logging
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from backend.config.settings import settings

logger = logging.getLogger(__name__)

GAZETTEER_PATH = Path(__file__).resolve().parent.parent / "data" / "gazetteer.json"

_CAPITALIZED_RUN = re.compile(r"\b[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*\b")
_TRAILING_QUALIFIER = re.compile(r"\s+(?:State|Province|Country|City|Town)$")


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def __str__(self) -> str:
        return f"{self.lat},{self.lng}"


@dataclass(frozen=True)
class LocationInfo:
    name: str
    country: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    coordinates: Optional[Coordinates] = None
    administrative_level: Optional[str] = None
    confidence: int = 0
    source: str = "local"


class Geocoder(ABC):
    """Resolves place names found in free text."""

    @abstractmethod
    async def resolve_location(self, text: str) -> Optional[LocationInfo]:
        ...

    @abstractmethod
    async def extract_locations(self, text: str) -> list[LocationInfo]:
        ...


def extract_location_phrases(text: str) -> list[str]:
    """Candidate place phrases: capitalized runs and their single words."""
    phrases: list[str] = []
    for match in _CAPITALIZED_RUN.finditer(text):
        phrase = _TRAILING_QUALIFIER.sub("", match.group()).strip()
        candidates = [phrase]
        words = phrase.split()
        if len(words) > 1:
            candidates += words
        for candidate in candidates:
            if len(candidate) > 2 and candidate not in phrases:
                phrases.append(candidate)
    return phrases


def _title(value: str) -> str:
    return " ".join(w[:1].upper() + w[1:] for w in value.split())


class GazetteerGeocoder(Geocoder):
    """
    Gazetteer-backed geocoder with an optional Nominatim fallback.

    Local hits: cities (confidence 95), states (90), countries (95).
    """

    def __init__(
        self,
        gazetteer_path: Path = GAZETTEER_PATH,
        remote_enabled: Optional[bool] = None,
        base_url: Optional[str] = None,
        rate_limit_seconds: Optional[float] = None,
        cache_ttl_seconds: Optional[int] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        with Path(gazetteer_path).open(encoding="utf-8") as f:
            data = json.load(f)
        self.countries: dict = data["countries"]
        self.aliases: dict[str, str] = data.get("aliases", {})

        self.remote_enabled = settings.geocoding_remote_enabled if remote_enabled is None else remote_enabled
        self.base_url = base_url or settings.nominatim_base_url
        self.rate_limit_seconds = (
            settings.geocoding_rate_limit_seconds if rate_limit_seconds is None else rate_limit_seconds
        )
        self.cache_ttl_seconds = (
            settings.geocoding_cache_ttl_seconds if cache_ttl_seconds is None else cache_ttl_seconds
        )
        self.client = client

        self._cache: dict[str, tuple[float, Optional[LocationInfo]]] = {}
        self._last_request = 0.0
        self._rate_lock = asyncio.Lock()

    # ──────────────────────────────────────────────
    # Public API
    # ──────────────────────────────────────────────

    async def resolve_location(self, text: str) -> Optional[LocationInfo]:
        normalized = text.strip().lower()
        if not normalized:
            return None

        cached = self._cache.get(normalized)
        if cached and time.monotonic() - cached[0] < self.cache_ttl_seconds:
            return cached[1]

        result = self.find_local(text.strip())
        if result is None and self.remote_enabled:
            try:
                result = await self.query_nominatim(text.strip())
            except (httpx.HTTPError, ValueError, KeyError) as e:
                logger.warning(f"Nominatim lookup failed for '{text}': {e}")
                return None

        self._cache[normalized] = (time.monotonic(), result)
        return result

    async def extract_locations(self, text: str) -> list[LocationInfo]:
        locations: list[LocationInfo] = []
        seen: set[str] = set()
        for phrase in extract_location_phrases(text):
            location = await self.resolve_location(phrase)
            if location and location.name.lower() not in seen:
                seen.add(location.name.lower())
                locations.append(location)
        return locations

    # ──────────────────────────────────────────────
    # Local gazetteer
    # ──────────────────────────────────────────────

    def find_local(self, location: str) -> Optional[LocationInfo]:
        normalized = location.lower()

        for country, country_data in self.countries.items():
            for state, state_data in country_data.get("subdivisions", {}).items():
                city = state_data.get("cities", {}).get(normalized)
                if city:
                    return LocationInfo(
                        name=location,
                        city=location,
                        state=_title(state),
                        country=_title(country),
                        coordinates=Coordinates(**city),
                        administrative_level="city",
                        confidence=95,
                    )

        for country, country_data in self.countries.items():
            state_data = country_data.get("subdivisions", {}).get(normalized)
            if state_data:
                coords = state_data.get("coordinates")
                return LocationInfo(
                    name=location,
                    state=location,
                    country=_title(country),
                    coordinates=Coordinates(**coords) if coords else None,
                    administrative_level="state",
                    confidence=90,
                )

        country_key = self.aliases.get(normalized, normalized)
        country_data = self.countries.get(country_key)
        if country_data:
            coords = country_data.get("coordinates")
            return LocationInfo(
                name=location,
                country=_title(country_key),
                coordinates=Coordinates(**coords) if coords else None,
                administrative_level="country",
                confidence=95,
            )

        return None

    # ──────────────────────────────────────────────
    # Nominatim fallback
    # ──────────────────────────────────────────────

    async def _wait_for_rate_limit(self):
        async with self._rate_lock:
            elapsed = time.monotonic() - self._last_request
            if elapsed < self.rate_limit_seconds:
                await asyncio.sleep(self.rate_limit_seconds - elapsed)
            self._last_request = time.monotonic()

    async def query_nominatim(self, location: str) -> Optional[LocationInfo]:
        """Query OpenStreetMap Nominatim for a single place name."""
        await self._wait_for_rate_limit()

        params = {"format": "json", "q": location, "limit": 1, "addressdetails": 1}
        headers = {"User-Agent": settings.nominatim_user_agent}
        if self.client is not None:
            response = await self.client.get(f"{self.base_url}/search", params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=15.0) as client:
                response = await client.get(f"{self.base_url}/search", params=params, headers=headers)
        response.raise_for_status()

        results = response.json()
        if not results:
            return None

        result = results[0]
        address = result.get("address", {})
        return LocationInfo(
            name=result.get("display_name", location).split(",")[0],
            country=address.get("country"),
            state=address.get("state") or address.get("province"),
            district=address.get("county") or address.get("district"),
            city=address.get("city") or address.get("town") or address.get("village"),
            coordinates=Coordinates(lat=float(result["lat"]), lng=float(result["lon"])),
            administrative_level=self._admin_level(result),
            confidence=self._remote_confidence(result),
            source="nominatim",
        )

    @staticmethod
    def _admin_level(result: dict) -> str:
        kind = result.get("type")
        if kind == "country" or (
            result.get("class") == "boundary"
            and kind == "administrative"
            and result.get("addresstype") == "country"
        ):
            return "country"
        if kind in ("state", "province"):
            return "state"
        if kind in ("county", "district"):
            return "district"
        return "city"

    @staticmethod
    def _remote_confidence(result: dict) -> int:
        confidence = 50
        if result.get("importance"):
            confidence += round(float(result["importance"]) * 30)
        address = result.get("address", {})
        if address.get("country") and address.get("state"):
            confidence += 10
        if result.get("type") in ("city", "town"):
            confidence += 10
        return min(confidence, 95)
