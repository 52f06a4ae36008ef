"""Match payload ingestion: flattening, raw storage, linking and import."""

from tourney.ingest.flatten import (
    FlattenedMatch,
    build_participant_roster_map,
    flatten_match_payload,
    get_match_id,
)
from tourney.ingest.importer import (
    ImportReport,
    import_match_json_dir,
    import_match_payload,
    import_match_payloads,
    load_columns,
)
from tourney.ingest.linker import (
    get_tournament_match_ids,
    link_tournament_matches,
    replace_tournament_matches,
)
from tourney.ingest.raw_store import (
    get_all_matches,
    get_matches_by_ids,
    get_normalized_match_ids,
    get_raw_match_payload,
    upsert_matches,
)

__all__ = [
    "FlattenedMatch",
    "build_participant_roster_map",
    "flatten_match_payload",
    "get_match_id",
    "ImportReport",
    "import_match_json_dir",
    "import_match_payload",
    "import_match_payloads",
    "load_columns",
    "get_tournament_match_ids",
    "link_tournament_matches",
    "replace_tournament_matches",
    "get_all_matches",
    "get_matches_by_ids",
    "get_normalized_match_ids",
    "get_raw_match_payload",
    "upsert_matches",
]
