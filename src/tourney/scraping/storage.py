"""
Local JSON storage for fetched match payloads.

Files are written as ``<match_id>.json`` so a directory can later be fed to
``tourney_import_raw`` or ``tourney_import_matches --data-dir``.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from tourney.ingest.flatten import get_match_id

logger = logging.getLogger(__name__)


def save_match_payload(payload: dict, output_dir: str | Path) -> Path | None:
    """Write a match payload to ``<output_dir>/<match_id>.json``.

    Returns the path written, or None if the payload has no match id.
    """
    match_id = get_match_id(payload)
    if match_id is None:
        logger.warning("Not saving payload without a match id")
        return None
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    path = out / f"{match_id}.json"
    with open(path, "w") as f:
        json.dump(payload, f, indent=2)
    logger.info(f"Saved match {match_id} to {path.name}")
    return path
