"""Tests for the stats API client using a fake requests session."""

import pytest
import requests

from tourney.core.config import StatsApiConfig
from tourney.core.errors import StatsApiError
from tourney.scraping import api as api_mod
from tourney.scraping.api import StatsApiClient, extract_player_match_ids


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, headers=None, params=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "params": params, "timeout": timeout})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    monkeypatch.setattr(api_mod.time, "sleep", lambda s: None)


def _client(responses, **config):
    cfg = StatsApiConfig(**{"api_key": "k", **config})
    return StatsApiClient(cfg, session=FakeSession(responses))


def test_fetch_match_builds_url_and_headers():
    client = _client([FakeResponse(payload={"data": {"id": "m1"}})], shard="kakao")
    assert client.fetch_match("m1") == {"data": {"id": "m1"}}

    call = client.session.calls[0]
    assert call["url"] == "https://api.pubg.com/shards/kakao/matches/m1"
    assert call["headers"]["Accept"] == "application/vnd.api+json"
    assert call["headers"]["Authorization"] == "Bearer k"
    assert call["timeout"] == 10.0


def test_fetch_match_retries_then_succeeds():
    client = _client(
        [
            requests.ConnectionError("boom"),
            FakeResponse(status_code=503),
            FakeResponse(payload={"data": {"id": "m1"}}),
        ]
    )
    assert client.fetch_match("m1")["data"]["id"] == "m1"
    assert len(client.session.calls) == 3


def test_fetch_match_gives_up_after_retries():
    client = _client([requests.Timeout("slow")] * 2, max_retries=2)
    with pytest.raises(StatsApiError):
        client.fetch_match("m1")
    assert len(client.session.calls) == 2


def test_not_found_is_not_retried():
    client = _client([FakeResponse(status_code=404)])
    with pytest.raises(StatsApiError):
        client.fetch_match("missing")
    assert len(client.session.calls) == 1


def test_unexpected_match_body():
    client = _client([FakeResponse(payload={"errors": []})])
    with pytest.raises(StatsApiError):
        client.fetch_match("m1")


def test_fetch_player_match_ids():
    body = {
        "data": [
            {
                "type": "player",
                "relationships": {
                    "matches": {"data": [{"type": "match", "id": "a"}, {"type": "match", "id": "b"}]}
                },
            }
        ]
    }
    client = _client([FakeResponse(payload=body)])
    assert client.fetch_player_match_ids("shroud") == ["a", "b"]
    assert client.session.calls[0]["params"] == {"filter[playerNames]": "shroud"}


def test_player_lookup_requires_key():
    client = _client([], api_key=None)
    with pytest.raises(StatsApiError):
        client.fetch_player_match_ids("shroud")


def test_extract_player_match_ids_tolerates_gaps():
    assert extract_player_match_ids({}) == []
    assert extract_player_match_ids({"data": [{"relationships": {}}, None]}) == []
