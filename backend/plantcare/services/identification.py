"""
Clients for the two HTTP collaborators used when adding a plant from a photo:

- PlantIdentifier: multipart image upload, ranked species guesses.
- SpeciesCareClient: best-effort watering/sunlight data by species name.

``suggest_care`` prefers the care API and falls back to the bundled table.
Suggestions only pre-fill the form; the user can override them before saving.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

import httpx

from ..errors import PlantCareError
from ..helpers.care_info import CareInfoLookup, get_care_lookup
from ..schemas.care import CareSuggestion, SpeciesGuess

DEFAULT_PLANTNET_URL = "https://my-api.plantnet.org/v2/identify/all"

# Coarse watering categories reported by the care API, in days.
WATERING_CATEGORY_DAYS = {
    "low": 14,
    "moderate": 7,
    "normal": 7,
    "high": 3,
}


class IdentificationError(PlantCareError):
    status_code = 502


class PlantIdentifier:
    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 30.0,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("PLANTNET_API_KEY", "")
        self.url = url or os.getenv("PLANTNET_API_URL", DEFAULT_PLANTNET_URL)
        self.client = client or httpx.Client(timeout=timeout)

    def identify(self, image: bytes, filename: str = "plant.jpg", content_type: str = "image/jpeg") -> list[SpeciesGuess]:
        """Return species guesses ordered by confidence, best first."""
        try:
            resp = self.client.post(
                self.url,
                params={"api-key": self.api_key},
                data={"organs": "leaf"},
                files={"images": (filename, image, content_type)},
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.HTTPError as e:
            logging.error(f"Plant identification request failed: {e}")
            raise IdentificationError("Failed to identify plant") from e
        except ValueError as e:
            raise IdentificationError("Failed to identify plant: invalid response") from e

        guesses = [g for g in (_parse_result(r) for r in payload.get("results") or []) if g]
        return sorted(guesses, key=lambda g: g.confidence, reverse=True)

    def top_guess(self, image: bytes, filename: str = "plant.jpg", content_type: str = "image/jpeg") -> SpeciesGuess:
        guesses = self.identify(image, filename, content_type)
        if not guesses:
            raise IdentificationError("No plant identified.")
        return guesses[0]


def _parse_result(result: dict) -> Optional[SpeciesGuess]:
    species = result.get("species") or {}
    name = species.get("scientificNameWithoutAuthor")
    if not name:
        return None
    score = float(result.get("score") or 0.0)
    gbif_id = (result.get("gbif") or {}).get("id")
    return SpeciesGuess(
        scientific_name=name,
        common_names=list(species.get("commonNames") or []),
        confidence=min(max(score, 0.0), 1.0),
        gbif_url=f"https://www.gbif.org/species/{gbif_id}" if gbif_id else None,
    )


class SpeciesCareClient:
    """
    GET ``{url}?q=<species>`` answering ``{"data": [{"watering": ..., "sunlight": ...}]}``.
    Any failure yields ``None`` so callers can fall back to the static table.
    """

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        client: httpx.Client | None = None,
        timeout: float = 10.0,
    ):
        self.api_key = api_key if api_key is not None else os.getenv("SPECIES_CARE_API_KEY", "")
        self.url = url if url is not None else os.getenv("SPECIES_CARE_API_URL", "")
        self.client = client or httpx.Client(timeout=timeout)

    def fetch(self, species_name: str) -> Optional[CareSuggestion]:
        if not self.url or not species_name:
            return None
        try:
            resp = self.client.get(self.url, params={"key": self.api_key, "q": species_name})
            resp.raise_for_status()
            rows = resp.json().get("data") or []
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logging.warning(f"Species care lookup failed for {species_name!r}: {e}")
            return None
        if not rows:
            return None

        row = rows[0]
        days = WATERING_CATEGORY_DAYS.get(str(row.get("watering") or "").strip().lower())
        if days is None:
            return None
        sunlight = row.get("sunlight")
        if isinstance(sunlight, list):
            sunlight = ", ".join(str(s) for s in sunlight)
        return CareSuggestion(watering_days=days, sunlight=sunlight or None, source="api")


def suggest_care(
    guess: SpeciesGuess,
    care_client: SpeciesCareClient | None = None,
    lookup: CareInfoLookup | None = None,
) -> Optional[CareSuggestion]:
    if care_client is not None:
        suggestion = care_client.fetch(guess.scientific_name)
        if suggestion is not None:
            return suggestion

    lookup = lookup or get_care_lookup()
    for name in [guess.scientific_name, *guess.common_names]:
        info = lookup.find(name)
        if info is not None:
            return CareSuggestion(watering_days=info.watering_days, sunlight=info.sunlight, source="lookup")
    return None
