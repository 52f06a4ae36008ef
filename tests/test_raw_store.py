import json

import pytest

from tourney.core.errors import MalformedPayload
from tourney.ingest.importer import import_match_payloads
from tourney.ingest.raw_store import (
    find_json_files,
    get_all_matches,
    get_matches_by_ids,
    get_normalized_match_ids,
    get_raw_match_payload,
    read_payload_file,
    upsert_matches,
)


def test_upsert_matches_replaces_payload(engine, payload_factory):
    first = payload_factory("m1")
    assert upsert_matches(engine, [first, payload_factory("m2")]) == (2, 0)

    updated = payload_factory("m1", rosters=1)
    assert upsert_matches(engine, [updated]) == (1, 0)

    stored = get_matches_by_ids(engine, ["m1", "m2", "missing"])
    assert set(stored) == {"m1", "m2"}
    assert stored["m1"] == updated


def test_upsert_matches_skips_payloads_without_id(engine, payload_factory):
    assert upsert_matches(engine, [payload_factory(match_id=None), {}]) == (0, 2)
    assert get_all_matches(engine) == []


def test_get_matches_by_ids_empty(engine):
    assert get_matches_by_ids(engine, []) == {}


def test_get_normalized_match_ids(engine, payload_factory):
    upsert_matches(engine, [payload_factory("m1"), payload_factory("m2")])
    import_match_payloads(engine, [payload_factory("m1")])
    assert len(get_all_matches(engine)) == 2
    assert get_normalized_match_ids(engine) == {"m1"}


def test_read_payload_file_accepts_dict_and_list(tmp_path):
    single = tmp_path / "one.json"
    single.write_text(json.dumps({"data": {"id": "m1"}}))
    many = tmp_path / "many.json"
    many.write_text(json.dumps([{"data": {"id": "m1"}}, 3, {"data": {"id": "m2"}}]))
    other = tmp_path / "other.json"
    other.write_text(json.dumps(42))

    assert read_payload_file(single) == [{"data": {"id": "m1"}}]
    assert [p["data"]["id"] for p in read_payload_file(many)] == ["m1", "m2"]
    assert read_payload_file(other) == []
    assert find_json_files(tmp_path) == [many, single, other]


def test_get_raw_match_payload(tmp_path):
    (tmp_path / "abc.json").write_text(json.dumps({"data": {"id": "abc"}}))
    assert get_raw_match_payload(tmp_path, "abc") == {"data": {"id": "abc"}}
    assert get_raw_match_payload(tmp_path, "nope") is None


def test_read_payload_file_rejects_invalid_json(tmp_path):
    truncated = tmp_path / "cut.json"
    truncated.write_text('{"data": {"id"')
    with pytest.raises(MalformedPayload) as exc_info:
        read_payload_file(truncated)
    assert exc_info.value.source == "cut.json"
