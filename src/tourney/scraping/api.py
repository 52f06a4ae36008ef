"""
HTTP client for the external match stats API (JSON:API responses).

Match documents are public per shard; player lookups need an API key.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

import requests

from tourney.core.config import StatsApiConfig
from tourney.core.constants import STATS_API_CONTENT_TYPE
from tourney.core.errors import StatsApiError

logger = logging.getLogger(__name__)


class StatsApiClient:
    """Fetch match payloads and player match ids from the stats API."""

    def __init__(
        self,
        config: Optional[StatsApiConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.config = config or StatsApiConfig.from_env()
        self.session = session or requests.Session()

    def _headers(self, require_key: bool = False) -> dict:
        headers = {"Accept": STATS_API_CONTENT_TYPE}
        if self.config.api_key:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        elif require_key:
            raise StatsApiError(
                "A stats API key is required (set PUBG_API_KEY)"
            )
        headers.update(self.config.extra_headers)
        return headers

    def build_url(self, path: str) -> str:
        return f"{self.config.base_url}/shards/{self.config.shard}/{path.lstrip('/')}"

    def _get_json(
        self, path: str, params: Optional[dict] = None, require_key: bool = False
    ) -> dict:
        url = self.build_url(path)
        headers = self._headers(require_key=require_key)
        last_error: Optional[Exception] = None
        for attempt in range(self.config.max_retries):
            try:
                response = self.session.get(
                    url, headers=headers, params=params, timeout=self.config.timeout
                )
                if response.status_code == 404:
                    raise StatsApiError(f"Not found: {url}")
                response.raise_for_status()
                return response.json()
            except StatsApiError:
                raise
            except (requests.RequestException, ValueError) as e:
                last_error = e
                if attempt < self.config.max_retries - 1:
                    wait_time = self.config.backoff_factor**attempt
                    logger.warning(
                        f"Attempt {attempt + 1} failed for {url}: {e}; "
                        f"retrying in {wait_time:.1f}s"
                    )
                    time.sleep(wait_time)
        raise StatsApiError(
            f"Failed to fetch {url} after {self.config.max_retries} attempts: {last_error}"
        )

    def fetch_match(self, match_id: str) -> dict:
        """Return the raw match payload for ``match_id``."""
        payload = self._get_json(f"matches/{match_id}")
        if not isinstance(payload, dict) or "data" not in payload:
            raise StatsApiError(f"Unexpected match response for {match_id}")
        logger.debug(f"Fetched match {match_id}")
        return payload

    def fetch_player_match_ids(self, player_name: str) -> list[str]:
        """Return recent match ids for a player by in-game name."""
        payload = self._get_json(
            "players",
            params={"filter[playerNames]": player_name},
            require_key=True,
        )
        return extract_player_match_ids(payload)


def extract_player_match_ids(payload: dict) -> list[str]:
    """Pull ``relationships.matches.data[*].id`` from a players response."""
    ids: list[str] = []
    for player in (payload or {}).get("data") or []:
        matches = (
            ((player or {}).get("relationships") or {}).get("matches") or {}
        ).get("data") or []
        for ref in matches:
            mid = (ref or {}).get("id")
            if mid and mid not in ids:
                ids.append(str(mid))
    return ids
